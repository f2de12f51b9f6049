"""
issues/models.py -- Domain dataclasses and enumerations for issues.

These are pure data containers with zero logic. Validation lives in
issues/schemas.py; persistence in issues/store.py.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class IssueStatus(str, Enum):
    backlog = "backlog"
    todo = "todo"
    in_progress = "in_progress"
    done = "done"


class IssuePriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


@dataclass
class IssueOwner:
    """The public face of an issue's creator, joined onto reads.

    Deliberately only id and email -- never the password hash.
    """

    id: str
    email: str


@dataclass
class Issue:
    """A tracked issue.

    id and created_at are None before the record is written to the database;
    the store assigns both on insert. user is populated on reads that join
    the owner and left None otherwise.
    """

    title: str
    user_id: str
    description: Optional[str] = None
    status: str = IssueStatus.backlog.value
    priority: str = IssuePriority.low.value
    id: Optional[int] = None
    created_at: Optional[str] = None
    user: Optional[IssueOwner] = None
