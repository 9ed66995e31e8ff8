from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Skill, SkillAcquisition, User
from .errors import NotFound, ValidationFailure
from storecheer.time_utils import to_utc_z


class SkillError(ValidationFailure):
    """Raised for invalid skill operations."""
    pass


def list_skills(organization_id: int) -> list[Skill]:
    return (
        db.session.query(Skill)
        .filter_by(organization_id=organization_id)
        .order_by(Skill.category.asc(), Skill.sort_order.asc(), Skill.id.asc())
        .all()
    )


def create_skill(
    organization_id: int,
    name: str,
    category: str,
    description: str | None = None,
    level: int = 1,
    icon: str | None = None,
    sort_order: int = 0,
) -> Skill:
    if not name or not category:
        raise SkillError("name and category are required")

    skill = Skill(
        organization_id=organization_id,
        name=name,
        category=category,
        description=description,
        level=level,
        icon=icon or "📘",
        sort_order=sort_order,
    )
    db.session.add(skill)
    db.session.commit()
    return skill


def get_user_skills(user_id: int) -> list[SkillAcquisition]:
    return (
        db.session.query(SkillAcquisition)
        .filter_by(user_id=user_id)
        .order_by(SkillAcquisition.acquired_at.asc())
        .all()
    )


def acquire_skill(user_id: int, skill_id: int, certified_by: int) -> SkillAcquisition:
    """Certify a skill for a user. Certifying twice returns the existing row."""
    if not db.session.query(User).filter_by(id=user_id).first():
        raise NotFound("User not found")
    if not db.session.query(Skill).filter_by(id=skill_id).first():
        raise NotFound("Skill not found")

    existing = db.session.query(SkillAcquisition).filter_by(user_id=user_id, skill_id=skill_id).first()
    if existing:
        return existing

    acquisition = SkillAcquisition(user_id=user_id, skill_id=skill_id, certified_by=certified_by)
    db.session.add(acquisition)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return db.session.query(SkillAcquisition).filter_by(user_id=user_id, skill_id=skill_id).one()
    return acquisition


def get_skill_tree(organization_id: int, user_id: int) -> dict:
    """
    Skills grouped by category with acquired/locked status for one user,
    plus overall and per-category progress.
    """
    acquired = {a.skill_id: a.acquired_at for a in get_user_skills(user_id)}

    categories: dict[str, list[dict]] = {}
    for skill in list_skills(organization_id):
        entry = skill.to_dict()
        entry["status"] = "acquired" if skill.id in acquired else "locked"
        entry["acquired_at"] = to_utc_z(acquired[skill.id]) if skill.id in acquired else None
        categories.setdefault(skill.category, []).append(entry)

    total = sum(len(skills) for skills in categories.values())
    acquired_count = sum(1 for skills in categories.values() for s in skills if s["status"] == "acquired")
    return {
        "total": total,
        "acquired": acquired_count,
        "categories": [
            {
                "name": name,
                "acquired": sum(1 for s in skills if s["status"] == "acquired"),
                "total": len(skills),
                "skills": skills,
            }
            for name, skills in categories.items()
        ],
    }
