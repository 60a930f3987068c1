import psutil
import pytest
from pytest_mock import MockerFixture

from procwarden.exceptions import ConflictTerminationError
from procwarden.supervisor import ProcessTableConflictGuard

CONFLICT_MODULE = "procwarden.supervisor._conflict"

pytestmark = pytest.mark.anyio


class TestProcessTableConflictGuard:
    def test_description_is_pattern(self) -> None:
        assert ProcessTableConflictGuard("vpndownloader").description == "vpndownloader"

    async def test_find_returns_matching_pids(self, mocker: MockerFixture) -> None:
        find = mocker.patch(f"{CONFLICT_MODULE}.find_pids", return_value=(70, 71))

        assert await ProcessTableConflictGuard("vpndownloader").find() == (70, 71)
        find.assert_called_once_with("vpndownloader")

    async def test_find_error(self, mocker: MockerFixture) -> None:
        _ = mocker.patch(f"{CONFLICT_MODULE}.find_pids", side_effect=OSError("no /proc"))

        with pytest.raises(ConflictTerminationError, match="Failed to look up"):
            _ = await ProcessTableConflictGuard("vpndownloader").find()

    async def test_terminate_uses_kill_timeout(self, mocker: MockerFixture) -> None:
        terminate = mocker.patch(f"{CONFLICT_MODULE}.terminate_pids", return_value=())

        await ProcessTableConflictGuard("vpndownloader", kill_timeout=1.5).terminate((70,))

        terminate.assert_called_once_with((70,), 1.5)

    async def test_survivors_raise(self, mocker: MockerFixture) -> None:
        _ = mocker.patch(f"{CONFLICT_MODULE}.terminate_pids", return_value=(71,))

        with pytest.raises(ConflictTerminationError, match="survived") as exc_info:
            await ProcessTableConflictGuard("vpndownloader").terminate((70, 71))

        assert exc_info.value.pids == (71,)

    async def test_access_denied_raises(self, mocker: MockerFixture) -> None:
        _ = mocker.patch(
            f"{CONFLICT_MODULE}.terminate_pids", side_effect=psutil.AccessDenied(70)
        )

        with pytest.raises(ConflictTerminationError, match="Failed to terminate") as exc_info:
            await ProcessTableConflictGuard("vpndownloader").terminate((70,))

        assert exc_info.value.pids == (70,)
