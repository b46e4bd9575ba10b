"""Clients and projects owned by a user."""

import logging
from typing import Any, List, Optional

from timeledger.errors import ValidationError
from timeledger.models import Client, Project
from timeledger.services.ownership import require_client
from timeledger.stores.interface import LedgerStore
from timeledger.utils.logging_utils import LogContext
from timeledger.validators import FieldValidators, ValidationReport

logger = logging.getLogger(__name__)


class CatalogService:
    """Create and list the clients and projects that time is billed to."""

    def __init__(self, store: LedgerStore):
        self.store = store

    def add_client(self, user_id: str, name: str, email: Optional[str] = None) -> Client:
        report = ValidationReport()
        name = FieldValidators.validate_non_empty_string(name, "name", report)
        if report.has_errors():
            raise ValidationError("Invalid client data", report=report)

        with LogContext(user_id=user_id):
            client = self.store.add_client(Client(name=name, created_by_id=user_id, email=email))
            logger.info(f"Added client {client.name}", extra={"client_id": client.id})
        return client

    def add_project(self, user_id: str, client_id: str, name: str, hourly_rate: Any) -> Project:
        """Add a project under one of the user's clients.

        Raises:
            ValidationError: If the name is blank or the rate is negative
            NotFoundError: If the client does not exist or is not the user's
        """
        report = ValidationReport()
        name = FieldValidators.validate_non_empty_string(name, "name", report)
        rate = FieldValidators.validate_non_negative_number(hourly_rate, "hourly_rate", report)
        if report.has_errors():
            raise ValidationError("Invalid project data", report=report)

        with LogContext(user_id=user_id, client_id=client_id):
            with self.store.transaction():
                require_client(self.store, client_id, user_id)
                project = self.store.add_project(
                    Project(
                        name=name,
                        client_id=client_id,
                        hourly_rate=rate,
                        created_by_id=user_id,
                    )
                )
            logger.info(f"Added project {project.name} at {project.hourly_rate}/h")
        return project

    def clients(self, user_id: str) -> List[Client]:
        return self.store.list_clients(created_by_id=user_id)

    def projects(self, user_id: str, client_id: Optional[str] = None) -> List[Project]:
        return self.store.list_projects(created_by_id=user_id, client_id=client_id)
