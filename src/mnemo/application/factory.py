"""
Subject Repository Factory
Centralizes the logic for selecting the storage adapter.
"""

import logging

from mnemo.application.config import AppConfig
from mnemo.domain.ports import SubjectRepository
from mnemo.infrastructure.repositories.memory import InMemorySubjectRepository
from mnemo.infrastructure.repositories.yaml_store import YamlSubjectRepository

logger = logging.getLogger(__name__)


def get_subject_repository(config: AppConfig) -> SubjectRepository:
    """
    Returns the SubjectRepository implementation selected by config.backend.
    """
    if config.backend == "memory":
        logger.debug("Backend: memory")
        return InMemorySubjectRepository()

    logger.debug(f"Backend: yaml ({config.data_file})")
    return YamlSubjectRepository(config.data_file)
