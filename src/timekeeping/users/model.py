from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role


@dataclass(frozen=True)
class Employee:
    """Thực thể miền (domain): nhân viên, chỉ các trường cần cho chấm công.

    Lưu ý: Tài khoản/đăng nhập do identity service quản lý.
    """

    user_id: int
    organization_id: int
    full_name: str
    role: Role = Role.EMPLOYEE
    is_active: bool = True
