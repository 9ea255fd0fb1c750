from sqlalchemy import func, select

from heritagepal.core.db.schemas import Grade, GradeTopic, Topic
from scripts.seed_db import GRADES, TOPICS, seed


async def test_seed_is_idempotent(session_maker):
    async with session_maker() as session:
        first = await seed(session)
    async with session_maker() as session:
        second = await seed(session)

    assert first == {
        "grades": len(GRADES),
        "topics": len(TOPICS),
        "links": sum(len(levels) for *_, levels in TOPICS),
    }
    assert second == {"grades": 0, "topics": 0, "links": 0}

    async with session_maker() as session:
        levels = (await session.execute(select(Grade.level).order_by(Grade.level))).scalars().all()
        assert levels == [1, 2, 3, 4, 5, 6]
        assert (await session.execute(select(func.count()).select_from(Topic))).scalar_one() == len(TOPICS)
        assert (await session.execute(select(func.count()).select_from(GradeTopic))).scalar_one() == first["links"]
