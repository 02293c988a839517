import time


class Profiler:
    def __init__(self, name="ISO2DFD", sync=None):
        self.name = name
        self.sync = sync
        self.start_time = 0
        self.end_time = 0
        self.duration = 0

    def __enter__(self):
        # Drain queued device work so start time only covers the timed block
        if self.sync is not None:
            self.sync()
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.sync is not None:
            self.sync()
        self.end_time = time.perf_counter()
        self.duration = self.end_time - self.start_time

    @property
    def milliseconds(self) -> int:
        return int(self.duration * 1000)
