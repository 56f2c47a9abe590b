import asyncio

import pytest

from eshop.services.database import DatabaseService


def run_with_db(tmp_path, scenario):
    async def main():
        db = DatabaseService(tmp_path / "eshop-test.db")
        await db.connect()
        await db.init_schema()
        try:
            return await scenario(db)
        finally:
            await db.disconnect()

    return asyncio.run(main())


def contact(name):
    return {"name": name, "email": f"{name.lower()}@example.com", "subject": "Hi", "message": "Hello"}


async def stored_names(db):
    rows = await db.fetch_all("SELECT name FROM contact_messages ORDER BY id")
    return [row["name"] for row in rows]


class TestTransaction:
    def test_commits_on_success(self, tmp_path):
        async def scenario(db):
            async with db.transaction():
                await db.insert("contact_messages", contact("A"))
                await db.insert("contact_messages", contact("B"))
            return await stored_names(db)

        assert run_with_db(tmp_path, scenario) == ["A", "B"]

    def test_rolls_back_on_error(self, tmp_path):
        async def scenario(db):
            with pytest.raises(RuntimeError):
                async with db.transaction():
                    await db.insert("contact_messages", contact("A"))
                    async with db.transaction():
                        await db.insert("contact_messages", contact("B"))
                    raise RuntimeError("out of stock")
            return await stored_names(db)

        assert run_with_db(tmp_path, scenario) == []

    def test_other_task_write_survives_rollback(self, tmp_path):
        async def scenario(db):
            started = asyncio.Event()

            async def failing_checkout():
                with pytest.raises(RuntimeError):
                    async with db.transaction():
                        await db.insert("contact_messages", contact("A"))
                        started.set()
                        await asyncio.sleep(0.05)
                        raise RuntimeError("out of stock")

            async def contact_form():
                await started.wait()
                await db.insert("contact_messages", contact("B"))

            await asyncio.gather(failing_checkout(), contact_form())
            return await stored_names(db)

        assert run_with_db(tmp_path, scenario) == ["B"]

    def test_transactions_of_different_tasks_do_not_interleave(self, tmp_path):
        async def scenario(db):
            events = []
            started = asyncio.Event()

            async def first():
                async with db.transaction():
                    events.append("first:start")
                    started.set()
                    await asyncio.sleep(0.05)
                    events.append("first:end")

            async def second():
                await started.wait()
                async with db.transaction():
                    events.append("second:start")

            await asyncio.gather(first(), second())
            return events

        assert run_with_db(tmp_path, scenario) == ["first:start", "first:end", "second:start"]
