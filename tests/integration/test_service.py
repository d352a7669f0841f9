"""Integration tests for the wired agent service."""

from unittest.mock import AsyncMock

import pytest

from aide.application.service import AideService
from aide.domain.models.agent_state import PipelineStage, TaskStatus
from aide.domain.models.memory_entry import MemoryKind
from aide.infrastructure.config.settings import AideSettings

pytestmark = pytest.mark.integration


def make_service(**overrides):
    settings = AideSettings(_env_file=None, **overrides)
    return AideService(settings=settings, configure_logging=False)


@pytest.mark.asyncio
class TestAideService:
    """End-to-end runs through the service facade"""

    async def test_run_task_logs_and_learns(self):
        service = make_service()

        run = await service.run_task(subject_id=1, project_id=42, prompt="build a todo list")

        assert run.final_stage == PipelineStage.DONE
        tasks = await service.project_tasks(42)
        assert [t.id for t in tasks] == [r.id for r in run.trace]
        assert await service.project_tasks(42, TaskStatus.FAILED) == []

        stats = await service.memory_statistics(1)
        assert stats.count_by_kind[MemoryKind.SOLUTION] == 1

    async def test_second_run_recalls_first(self):
        generator = AsyncMock()
        generator.generate.return_value = "export function f() { try { return 1; } catch (error) { throw error; } }"
        service = AideService(
            settings=AideSettings(_env_file=None),
            generator=generator,
            configure_logging=False,
        )

        await service.run_task(1, 42, "build a todo list")
        await service.run_task(1, 42, "build a todo list")

        planner_prompts = [
            call.args[1] for call in generator.generate.await_args_list
            if "Relevant past experience" in call.args[1]
        ]
        assert len(planner_prompts) == 1
        assert "- [solution] build a todo list-" in planner_prompts[0]

    async def test_settings_control_revisions(self):
        generator = AsyncMock()
        generator.generate.return_value = "export const x = 1;"
        service = AideService(
            settings=AideSettings(_env_file=None, max_revisions=1),
            generator=generator,
            configure_logging=False,
        )

        run = await service.run_task(1, 42, "task")

        assert run.final_stage == PipelineStage.ABORTED
        assert run.revisions == 1
        assert len(run.trace) == 5
        stats = await service.memory_statistics(1)
        assert stats.count_by_kind[MemoryKind.ERROR] == 1

    async def test_services_do_not_share_memory(self):
        first = make_service()
        second = make_service()

        await first.run_task(1, 42, "build a todo list")

        assert (await second.memory_statistics(1)).total_memories == 0

    async def test_embedding_dimensions_from_settings(self):
        service = make_service(embedding_dimensions=16)

        await service.run_task(1, 42, "build a todo list")

        entry = (await service.memory_statistics(1)).most_recent[0]
        assert len(entry.embedding) == 16
