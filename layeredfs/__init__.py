"""A virtual file system that layers directories and zip archives into one tree."""

__version__ = "0.5.1"
__all__ = ["errors", "vfs", "zipfs"]