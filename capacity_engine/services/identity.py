"""Deterministic RFC 4122 version-5 identifiers for migrated entities.

The same name under the same namespace always yields the same UUID, so
re-running a migration produces identical ids and upserts stay idempotent.
Names are hashed verbatim: case and whitespace are significant.
"""

from __future__ import annotations

import re
import uuid
from typing import Any

from capacity_engine.utils.config import RFC4122_DNS_NAMESPACE


APPLICATION_NAMESPACE = RFC4122_DNS_NAMESPACE

_UUID_SHAPE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
_UUID_V5 = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-5[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def generate_uuid_v5(name: str, namespace: str = APPLICATION_NAMESPACE) -> str:
    return str(uuid.uuid5(uuid.UUID(namespace), name))


def generate_resource_id(email: str, namespace: str = APPLICATION_NAMESPACE) -> str:
    return generate_uuid_v5(email, namespace)


def generate_team_id(team_name: str, namespace: str = APPLICATION_NAMESPACE) -> str:
    return generate_uuid_v5(team_name, namespace)


def generate_project_id(project_name: str, namespace: str = APPLICATION_NAMESPACE) -> str:
    return generate_uuid_v5(project_name, namespace)


def generate_department_id(department_name: str, namespace: str = APPLICATION_NAMESPACE) -> str:
    return generate_uuid_v5(department_name, namespace)


def generate_task_id(
    task_name: str,
    project_name: str,
    namespace: str = APPLICATION_NAMESPACE,
) -> str:
    return generate_uuid_v5(f"{project_name}:{task_name}", namespace)


def generate_allocation_id(
    resource_id: str,
    project_id: str,
    start_date: str,
    end_date: str,
    namespace: str = APPLICATION_NAMESPACE,
) -> str:
    return generate_uuid_v5(f"{resource_id}-{project_id}-{start_date}-{end_date}", namespace)


def is_uuid_shape(value: Any) -> bool:
    return isinstance(value, str) and _UUID_SHAPE.fullmatch(value) is not None


def is_valid_uuid_v5(value: Any) -> bool:
    """8-4-4-4-12 hex, version nibble 5, variant nibble in {8, 9, a, b}."""
    return isinstance(value, str) and _UUID_V5.fullmatch(value) is not None
