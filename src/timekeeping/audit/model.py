from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional

from ..core.enums import AuditAction


@dataclass(frozen=True)
class AuditEvent:
    """Một dòng nhật ký hoạt động (append-only)."""

    actor_id: Optional[int]
    action: AuditAction
    module: str
    target_id: Optional[int]
    target_model: str
    created_at: datetime
    details: Mapping[str, Any] = field(default_factory=dict)
    ip: str = ""
    user_agent: str = ""
