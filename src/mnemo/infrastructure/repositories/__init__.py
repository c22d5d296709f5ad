# Subject Repository Adapters
from .memory import InMemorySubjectRepository
from .yaml_store import YamlSubjectRepository

__all__ = ["InMemorySubjectRepository", "YamlSubjectRepository"]
