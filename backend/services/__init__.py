from fastapi import Depends

from repositories import HabitRepository, UserRepository, get_habit_repository, get_user_repository
from services.habit_service import HabitService
from services.user_service import UserService


def get_habit_service(habits: HabitRepository = Depends(get_habit_repository)) -> HabitService:
    """FastAPI dependency — service over the shared habit store."""
    return HabitService(habits)


def get_user_service(users: UserRepository = Depends(get_user_repository)) -> UserService:
    return UserService(users)
