from . import materials, metrics, programs, progress, relationships

__all__ = ["materials", "metrics", "programs", "progress", "relationships"]
