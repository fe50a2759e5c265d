from fastapi import APIRouter, Depends
from pydantic import BaseModel
from typing import Optional

from auth import get_current_user
from services import get_habit_service
from services.habit_service import HabitService
from services import stats_service

router = APIRouter(prefix="/api/habits", tags=["Habits"])

class HabitCreate(BaseModel):
    # title is checked by the service so a missing one gets a readable 400
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    frequency: Optional[str] = None
    goal: Optional[int] = None
    color: Optional[str] = None
    icon: Optional[str] = None

class HabitUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    frequency: Optional[str] = None
    goal: Optional[int] = None
    color: Optional[str] = None
    icon: Optional[str] = None

class TrackRequest(BaseModel):
    date: Optional[str] = None  # YYYY-MM-DD, defaults to today (UTC)
    completed: bool = False

@router.post("", status_code=201)
async def create_habit(
    habit_data: HabitCreate,
    user_id: int = Depends(get_current_user),
    service: HabitService = Depends(get_habit_service),
):
    habit = service.create(user_id, habit_data.model_dump())
    return {"success": True, "data": habit, "message": "Habit created successfully"}

@router.get("")
async def list_habits(
    user_id: int = Depends(get_current_user),
    service: HabitService = Depends(get_habit_service),
):
    habits = service.get_all(user_id)
    return {"success": True, "data": habits, "count": len(habits)}

@router.get("/stats")
async def habit_stats(
    user_id: int = Depends(get_current_user),
    service: HabitService = Depends(get_habit_service),
):
    return {"success": True, "data": stats_service.summary(service.get_all(user_id))}

@router.put("/{habit_id}")
async def update_habit(
    habit_id: int,
    habit_data: HabitUpdate,
    user_id: int = Depends(get_current_user),
    service: HabitService = Depends(get_habit_service),
):
    habit = service.update(user_id, habit_id, habit_data.model_dump(exclude_unset=True))
    return {"success": True, "data": habit}

@router.delete("/{habit_id}")
async def delete_habit(
    habit_id: int,
    user_id: int = Depends(get_current_user),
    service: HabitService = Depends(get_habit_service),
):
    deleted = service.delete(user_id, habit_id)
    return {"success": True, "message": "Habit deleted", "data": deleted}

@router.post("/{habit_id}/track")
async def track_habit(
    habit_id: int,
    body: TrackRequest,
    user_id: int = Depends(get_current_user),
    service: HabitService = Depends(get_habit_service),
):
    habit = service.track(user_id, habit_id, body.date, body.completed)
    return {"success": True, "data": habit}
