"""Q-SYS plugin compiler: include/encode directive resolution and build versioning."""

__version__ = "0.1.0"
