"""Seed grades 1-6 and the starter Social Studies topics.

Safe to run repeatedly: existing grades (by level), topics (by title) and
grade links are left alone.

Usage:
  python scripts/seed_db.py
"""

from __future__ import annotations

import asyncio

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from heritagepal.core.db.base import Base, build_engine, build_session_maker
from heritagepal.core.db.schemas import Grade, GradeTopic, Topic


ORDINALS = ("First", "Second", "Third", "Fourth", "Fifth", "Sixth")

GRADES = [
    {"level": i, "name": f"Grade {i}", "description": f"{ORDINALS[i - 1]} grade primary school students"}
    for i in range(1, 7)
]

# (title, description, content, grade levels)
TOPICS: list[tuple[str, str, str, list[int]]] = [
    (
        "My Family",
        "All about families in Guyana",
        "Families in Guyana come in different sizes and structures. Family members have "
        "different roles and responsibilities. Family traditions are important in Guyanese culture.",
        [1, 2],
    ),
    (
        "My School",
        "Learning about schools and education",
        "Schools are places where children learn and grow. In Guyana, education is important "
        "for every child. Schools help students develop skills for the future.",
        [1, 2],
    ),
    (
        "Our Community",
        "Understanding our local community",
        "Communities in Guyana have different people who work together. Community helpers like "
        "teachers, doctors, and police officers help keep communities safe and functioning.",
        [1, 2, 3],
    ),
    (
        "Guyanese Culture",
        "The diverse cultures of Guyana",
        "Guyana has a rich cultural heritage influenced by Indigenous peoples, Africans, Indians, "
        "Chinese, and Europeans. This diversity is seen in our food, festivals, music, and traditions.",
        [3, 4],
    ),
    (
        "Natural Resources",
        "Guyana's valuable natural resources",
        "Guyana is rich in natural resources including bauxite, gold, diamonds, timber, and more "
        "recently, oil. These resources are important for Guyana's development and economy.",
        [3, 4, 5],
    ),
    (
        "Geography of Guyana",
        "The physical features of Guyana",
        "Guyana is divided into four natural regions: the coastal plain, the sand belt, the "
        "highland region, and the interior savannah. Each region has unique characteristics and resources.",
        [3, 4, 5],
    ),
    (
        "Government and Citizenship",
        "Understanding Guyana's government structure",
        "Guyana is a democratic republic with three branches of government: executive, "
        "legislative, and judicial. Citizens have rights and responsibilities in maintaining democracy.",
        [5, 6],
    ),
    (
        "Guyanese History",
        "The history of Guyana from pre-colonial times to independence",
        "Guyana's history includes indigenous settlements, European colonization by the Dutch and "
        "British, slavery and indentureship, the struggle for independence, and development as a nation.",
        [5, 6],
    ),
    (
        "Agriculture and Industry",
        "Guyana's agricultural and industrial sectors",
        "Agriculture is a major part of Guyana's economy, with rice and sugar being important crops. "
        "Industry includes mining, timber processing, and manufacturing.",
        [5, 6],
    ),
    (
        "Environmental Conservation",
        "Protecting Guyana's natural environment",
        "Guyana is home to vast rainforests and diverse wildlife. Conservation efforts aim to "
        "protect these natural resources while allowing for sustainable development.",
        [4, 5, 6],
    ),
]


async def seed(session: AsyncSession) -> dict[str, int]:
    """Insert missing rows; returns how many of each kind were added."""
    added = {"grades": 0, "topics": 0, "links": 0}

    existing = {g.level: g for g in (await session.execute(select(Grade))).scalars().all()}
    for row in GRADES:
        if row["level"] in existing:
            print(f"Grade {row['level']} already exists, skipping...")
            continue
        grade = Grade(**row)
        session.add(grade)
        existing[grade.level] = grade
        added["grades"] += 1
    await session.flush()

    for title, description, content, levels in TOPICS:
        topic = (await session.execute(select(Topic).where(Topic.title == title))).scalar_one_or_none()
        if topic is None:
            topic = Topic(title=title, description=description, content=content)
            session.add(topic)
            await session.flush()
            added["topics"] += 1
        else:
            print(f"Topic {title!r} already exists, skipping...")

        linked = set(
            (
                await session.execute(select(GradeTopic.grade_id).where(GradeTopic.topic_id == topic.id))
            ).scalars().all()
        )
        for level in levels:
            grade_id = existing[level].id
            if grade_id not in linked:
                session.add(GradeTopic(grade_id=grade_id, topic_id=topic.id))
                added["links"] += 1

    await session.commit()
    return added


async def main() -> int:
    engine = build_engine()
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        async with build_session_maker(engine)() as session:
            added = await seed(session)
    finally:
        await engine.dispose()

    print("Seeding complete:")
    for kind, count in added.items():
        print(f"- {kind} added: {count}")
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
