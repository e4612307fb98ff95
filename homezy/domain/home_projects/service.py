"""
Home project service - a homeowner's own renovation tracker.

Tasks and cost items live in JSON columns on the project row. Every change
reassigns the whole list so SQLAlchemy notices it.
"""

import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...constants import DEFAULT_HOME_PROJECT_NAME
from ...exceptions import BadRequestError, NotFoundError
from ...models import User
from ...models_home import HomeProject, Property
from .schemas import (
    CostItemCreate,
    CostItemUpdate,
    HomeProjectCreate,
    HomeProjectUpdate,
    TaskCreate,
    TaskUpdate,
)

logger = logging.getLogger(__name__)


def _actual_total(cost_items: list[dict]) -> float:
    return round(sum(float(item.get("actual") or 0) for item in cost_items), 2)


class HomeProjectService:
    """Service layer for home project business logic"""

    def __init__(self, db: Session):
        self.db = db

    def _get_own(self, project_id: int, owner: User) -> HomeProject:
        project = (
            self.db.query(HomeProject)
            .filter(HomeProject.id == project_id, HomeProject.homeowner_id == owner.id)
            .first()
        )
        if not project:
            raise NotFoundError("Project not found")
        return project

    def _check_property(self, property_id: Optional[int], owner: User):
        if property_id is None:
            return
        exists = (
            self.db.query(Property.id)
            .filter(Property.id == property_id, Property.owner_id == owner.id)
            .first()
        )
        if not exists:
            raise NotFoundError("Property not found")

    def _save(self, project: HomeProject) -> HomeProject:
        self.db.commit()
        self.db.refresh(project)
        return project

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def create_project(self, owner: User, data: HomeProjectCreate) -> HomeProject:
        self._check_property(data.property_id, owner)
        project = HomeProject(
            homeowner_id=owner.id, tasks=[], cost_items=[], budget_actual=0.0, **data.model_dump()
        )
        self.db.add(project)
        project = self._save(project)
        logger.info(f"✅ Home project {project.id} created for user {owner.id}")
        return project

    def list_projects(self, owner: User, status: Optional[str] = None) -> list[HomeProject]:
        query = self.db.query(HomeProject).filter(HomeProject.homeowner_id == owner.id)
        if status:
            query = query.filter(HomeProject.status == status)
        return query.order_by(
            HomeProject.is_default.desc(), HomeProject.created_at.desc(), HomeProject.id.desc()
        ).all()

    def get_project(self, project_id: int, owner: User) -> HomeProject:
        return self._get_own(project_id, owner)

    def get_or_create_default(self, owner: User) -> HomeProject:
        project = (
            self.db.query(HomeProject)
            .filter(HomeProject.homeowner_id == owner.id, HomeProject.is_default.is_(True))
            .first()
        )
        if project:
            return project

        project = HomeProject(
            homeowner_id=owner.id,
            name=DEFAULT_HOME_PROJECT_NAME,
            description="General upkeep and expenses for your home",
            category="maintenance",
            status="in-progress",
            is_default=True,
            tasks=[],
            cost_items=[],
            budget_actual=0.0,
        )
        self.db.add(project)
        return self._save(project)

    def update_project(self, project_id: int, owner: User, data: HomeProjectUpdate) -> HomeProject:
        project = self._get_own(project_id, owner)
        updates = data.model_dump(exclude_unset=True)
        if "property_id" in updates:
            self._check_property(updates["property_id"], owner)

        for key, value in updates.items():
            if key in ("name", "category", "status") and value is None:
                continue
            setattr(project, key, value)

        if updates.get("status") == "completed" and not project.actual_end_date:
            project.actual_end_date = datetime.utcnow()
        return self._save(project)

    def delete_project(self, project_id: int, owner: User) -> dict:
        project = self._get_own(project_id, owner)
        if project.is_default:
            raise BadRequestError("The default home project cannot be deleted", code="DEFAULT_PROJECT")
        self.db.delete(project)
        self.db.commit()
        return {"message": "Project deleted"}

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def add_task(self, project_id: int, owner: User, data: TaskCreate) -> HomeProject:
        project = self._get_own(project_id, owner)
        task = {"id": uuid.uuid4().hex, **data.model_dump(mode="json"), "completed_at": None}
        if task["status"] == "done":
            task["completed_at"] = datetime.utcnow().isoformat()
        project.tasks = [*(project.tasks or []), task]
        return self._save(project)

    def update_task(self, project_id: int, task_id: str, owner: User, data: TaskUpdate) -> HomeProject:
        project = self._get_own(project_id, owner)
        tasks = [dict(t) for t in (project.tasks or [])]
        task = next((t for t in tasks if t.get("id") == task_id), None)
        if task is None:
            raise NotFoundError("Task not found")

        for key, value in data.model_dump(exclude_unset=True, mode="json").items():
            if key in ("title", "status", "priority") and value is None:
                continue
            task[key] = value
        if task.get("status") == "done" and not task.get("completed_at"):
            task["completed_at"] = datetime.utcnow().isoformat()
        elif task.get("status") != "done":
            task["completed_at"] = None

        project.tasks = tasks
        return self._save(project)

    def delete_task(self, project_id: int, task_id: str, owner: User) -> HomeProject:
        project = self._get_own(project_id, owner)
        tasks = [t for t in (project.tasks or []) if t.get("id") != task_id]
        if len(tasks) == len(project.tasks or []):
            raise NotFoundError("Task not found")
        project.tasks = tasks
        return self._save(project)

    # ------------------------------------------------------------------
    # Cost items
    # ------------------------------------------------------------------

    def _set_cost_items(self, project: HomeProject, items: list[dict]):
        project.cost_items = items
        project.budget_actual = _actual_total(items)

    def add_cost_item(self, project_id: int, owner: User, data: CostItemCreate) -> HomeProject:
        project = self._get_own(project_id, owner)
        item = {"id": uuid.uuid4().hex, **data.model_dump()}
        self._set_cost_items(project, [*(project.cost_items or []), item])
        return self._save(project)

    def update_cost_item(
        self, project_id: int, item_id: str, owner: User, data: CostItemUpdate
    ) -> HomeProject:
        project = self._get_own(project_id, owner)
        items = [dict(i) for i in (project.cost_items or [])]
        item = next((i for i in items if i.get("id") == item_id), None)
        if item is None:
            raise NotFoundError("Cost item not found")
        for key, value in data.model_dump(exclude_unset=True).items():
            if key in ("title", "category", "status", "estimated") and value is None:
                continue
            item[key] = value
        self._set_cost_items(project, items)
        return self._save(project)

    def delete_cost_item(self, project_id: int, item_id: str, owner: User) -> HomeProject:
        project = self._get_own(project_id, owner)
        items = [i for i in (project.cost_items or []) if i.get("id") != item_id]
        if len(items) == len(project.cost_items or []):
            raise NotFoundError("Cost item not found")
        self._set_cost_items(project, items)
        return self._save(project)

    def budget_summary(self, project_id: int, owner: User) -> dict:
        project = self._get_own(project_id, owner)
        items = project.cost_items or []

        by_category: dict[str, dict] = {}
        for item in items:
            bucket = by_category.setdefault(item.get("category", "other"), {"estimated": 0.0, "actual": 0.0})
            bucket["estimated"] = round(bucket["estimated"] + float(item.get("estimated") or 0), 2)
            bucket["actual"] = round(bucket["actual"] + float(item.get("actual") or 0), 2)

        items_estimated = round(sum(float(i.get("estimated") or 0) for i in items), 2)
        actual = _actual_total(items)
        estimated = project.budget_estimated if project.budget_estimated is not None else items_estimated
        return {
            "project_id": project.id,
            "budget_estimated": project.budget_estimated,
            "items_estimated": items_estimated,
            "actual": actual,
            "variance": round(estimated - actual, 2),
            "by_category": by_category,
        }
