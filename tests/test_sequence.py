import asyncio

from proforma_service.services.sequence import allocate_next, peek_next_number


async def _allocate(session_factory, user_id):
    async with session_factory() as session:
        number = await allocate_next(session, user_id)
        await session.commit()
        return number


async def test_first_allocation_is_one(db):
    assert await allocate_next(db, 1) == 1
    await db.commit()


async def test_sequential_allocations_are_contiguous(session_factory):
    numbers = [await _allocate(session_factory, 1) for _ in range(10)]
    assert numbers == list(range(1, 11))


async def test_concurrent_allocations_are_unique(session_factory):
    numbers = await asyncio.gather(*[_allocate(session_factory, 1) for _ in range(10)])
    assert sorted(numbers) == list(range(1, 11))


async def test_counters_are_independent_per_user(session_factory):
    assert await _allocate(session_factory, 1) == 1
    assert await _allocate(session_factory, 1) == 2
    assert await _allocate(session_factory, 2) == 1
    assert await _allocate(session_factory, 1) == 3


async def test_peek_does_not_allocate(session_factory):
    async with session_factory() as session:
        assert await peek_next_number(session, 1) == 1
    async with session_factory() as session:
        assert await peek_next_number(session, 1) == 1

    await _allocate(session_factory, 1)
    await _allocate(session_factory, 1)
    async with session_factory() as session:
        assert await peek_next_number(session, 1) == 3
        assert await peek_next_number(session, 1) == 3
    assert await _allocate(session_factory, 1) == 3
