# backend/routes/admin.py
from fastapi import APIRouter, Depends, HTTPException, status, Request
from typing import List
from sqlalchemy.orm import Session

from database import get_db
from repositories.role import RoleRepository
from repositories.user import UserRepository
from schemas.base import Entity, Payload
from schemas.user import User, UserPatch, UserProfile
from utils.audit import write_log
from utils.tokenJWT import role_required

router = APIRouter(prefix="/admin", tags=["Admin"])

admin_only = role_required("admin")


# User row with the resolved role name
class UserWithRoleOut(UserProfile):
    role_name: str

# Schema for administrative role updates
class RoleUpdate(Payload):
    role: str

class RoleUpdated(Entity):
    id: int
    email: str
    role: str


# Retrieve every user with role details (Admin only)
@router.get("/users", response_model=List[UserWithRoleOut])
def get_all_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only)
):
    return [
        UserWithRoleOut(**u.model_dump(exclude={"password_hash", "role_details"}), role_name=u.role_details.name)
        for u in UserRepository(db).find_all_with_roles()
    ]


# Update user role (Admin only)
@router.put("/users/{user_id}/role", response_model=RoleUpdated)
def update_user_role(
    user_id: int,
    new_role: RoleUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only)
):
    if not RoleRepository(db).find_by_name(new_role.role):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown role")

    user = UserRepository(db).records.update(user_id, UserPatch(role=new_role.role))
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    write_log(db, user_id=current_user.id, action="ROLE_CHANGE", resource="users", status="SUCCESS",
              ip=request.client.host if request.client else None, meta={"id": user.id, "role": user.role})
    return RoleUpdated(id=user.id, email=user.email, role=user.role)


# Delete a user account (Admin only)
@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only)
):
    # Prevent self-deletion
    if user_id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")

    if not UserRepository(db).records.delete(user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
