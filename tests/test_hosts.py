"""End-to-end tests: gateway over the in-memory host, plus shared polling behaviour."""

import asyncio

import pytest

from lux.constants import METHOD_SET_BRIGHTNESS
from lux.gateway import BrightnessGateway
from lux.host.base import ChangeVerificationError, NullParameterError
from lux.host.memory import MemoryBrightnessHost
from lux.host.polling import PollingBrightnessHost


class StuckMemoryHost(MemoryBrightnessHost):
    """A virtual display that ignores writes."""

    def write_level(self, level: float) -> None:
        pass


class PolledHost(PollingBrightnessHost):
    """A host whose level is only visible by polling."""

    name = "polled"

    def __init__(self, level: float) -> None:
        super().__init__(poll_interval=0.01)
        self.level = level

    def read_level(self) -> float:
        return self.level

    def write_level(self, level: float) -> None:
        self.level = level


@pytest.fixture
def host():
    return MemoryBrightnessHost(system_brightness=0.42)


@pytest.fixture
def gateway(host):
    return BrightnessGateway(host, host)


async def next_value(stream, timeout: float = 1.0):
    return await asyncio.wait_for(anext(stream), timeout=timeout)


class TestSetThenGet:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [0.0, 0.13, 0.5, 0.999, 1.0])
    async def test_current_reflects_set_value(self, gateway, value):
        await gateway.set_brightness(value)
        assert await gateway.get_current_brightness() == value

    @pytest.mark.asyncio
    async def test_system_brightness_is_not_affected_by_set(self, gateway):
        await gateway.set_brightness(0.9)
        assert await gateway.get_system_brightness() == 0.42

    @pytest.mark.asyncio
    async def test_reset_restores_system_brightness(self, gateway):
        await gateway.set_brightness(0.9)
        await gateway.reset_brightness()
        assert await gateway.get_current_brightness() == 0.42

    @pytest.mark.asyncio
    async def test_has_changed_follows_set_and_reset(self, gateway):
        assert await gateway.has_changed() is False
        await gateway.set_brightness(0.1)
        assert await gateway.has_changed() is True
        await gateway.reset_brightness()
        assert await gateway.has_changed() is False


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_read_set_and_notify(self, gateway):
        assert await gateway.get_current_brightness() == 0.42

        stream = gateway.brightness_change_stream()
        await gateway.set_brightness(0.9)

        assert await next_value(stream) == 0.9

    @pytest.mark.asyncio
    async def test_out_of_range_set_records_no_call(self, host, gateway):
        calls = []
        original = host.invoke_method

        async def recording(method, arguments=None):
            calls.append(method)
            return await original(method, arguments)

        host.invoke_method = recording

        with pytest.raises(ValueError) as exc_info:
            await gateway.set_brightness(-0.1)

        assert exc_info.value.value == -0.1
        assert calls == []
        assert await gateway.get_current_brightness() == 0.42

    @pytest.mark.asyncio
    async def test_external_changes_reach_subscribers(self, host, gateway):
        stream = gateway.brightness_change_stream()

        host.simulate_external_change(0.2)

        assert await next_value(stream) == 0.2
        assert await gateway.get_current_brightness() == 0.2

    @pytest.mark.asyncio
    async def test_reset_is_notified(self, gateway):
        stream = gateway.brightness_change_stream()

        await gateway.set_brightness(0.8)
        await gateway.reset_brightness()

        assert await next_value(stream) == 0.8
        assert await next_value(stream) == 0.42

    @pytest.mark.asyncio
    async def test_repeated_value_is_notified_once(self, host, gateway):
        stream = gateway.brightness_change_stream()

        await gateway.set_brightness(0.6)
        await gateway.set_brightness(0.6)
        host.simulate_external_change(0.7)

        assert await next_value(stream) == 0.6
        assert await next_value(stream) == 0.7


class TestVerification:
    @pytest.mark.asyncio
    async def test_reset_mismatch_raises_change_verification(self):
        host = StuckMemoryHost(system_brightness=0.5)
        gateway = BrightnessGateway(host, host)
        await gateway.get_system_brightness()
        host.simulate_external_change(0.8)

        with pytest.raises(ChangeVerificationError) as exc_info:
            await gateway.reset_brightness()

        assert exc_info.value.code == -1

    @pytest.mark.asyncio
    async def test_set_mismatch_raises_change_verification(self):
        host = StuckMemoryHost(system_brightness=0.5)
        gateway = BrightnessGateway(host, host)

        with pytest.raises(ChangeVerificationError):
            await gateway.set_brightness(0.1)

        assert await gateway.has_changed() is False

    @pytest.mark.asyncio
    async def test_resolution_tolerates_quantized_read_back(self):
        host = MemoryBrightnessHost(system_brightness=0.5, resolution=0.01)
        host.write_level = lambda level: setattr(host, "_level", round(level, 2))
        gateway = BrightnessGateway(host, host)

        await gateway.set_brightness(0.333)

        assert await gateway.get_current_brightness() == 0.333


class TestMethodChannel:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("arguments", [None, {}, {"brightness": None}, {"brightness": "0.5"}])
    async def test_set_without_numeric_brightness_raises_null_parameter(self, host, arguments):
        with pytest.raises(NullParameterError) as exc_info:
            await host.invoke_method(METHOD_SET_BRIGHTNESS, arguments)

        assert exc_info.value.code == -2

    @pytest.mark.asyncio
    async def test_unknown_method_raises(self, host):
        with pytest.raises(NotImplementedError, match="noSuchMethod"):
            await host.invoke_method("noSuchMethod")

    @pytest.mark.asyncio
    async def test_each_receive_is_a_new_host_subscription(self, host):
        first = host.receive_broadcast_stream()
        second = host.receive_broadcast_stream()

        host.publish(0.3)

        assert await next_value(first) == 0.3
        assert await next_value(second) == 0.3

        await first.aclose()
        host.publish(0.4)
        assert await next_value(second) == 0.4


class TestPolling:
    @pytest.mark.asyncio
    async def test_polling_picks_up_external_change(self):
        host = PolledHost(level=0.3)
        gateway = BrightnessGateway(host, host)
        stream = gateway.brightness_change_stream()

        await asyncio.sleep(0.05)  # let the first poll record the starting level
        host.level = 0.65

        assert await next_value(stream) == 0.65

    @pytest.mark.asyncio
    async def test_unchanged_level_is_not_emitted(self):
        host = PolledHost(level=0.3)
        subscription = host.receive_broadcast_stream()

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(anext(subscription), timeout=0.1)


class TestAcrossEventLoops:
    def test_stream_keeps_working_in_a_second_asyncio_run(self):
        host = MemoryBrightnessHost(system_brightness=0.5)
        gateway = BrightnessGateway(host, host)

        async def set_and_receive(value):
            stream = gateway.brightness_change_stream()
            await gateway.set_brightness(value)
            return await next_value(stream)

        assert asyncio.run(set_and_receive(0.7)) == 0.7
        assert asyncio.run(set_and_receive(0.3)) == 0.3
        assert not gateway._broadcast.is_closed

    def test_values_published_between_runs_are_not_lost(self):
        host = MemoryBrightnessHost(system_brightness=0.5)
        gateway = BrightnessGateway(host, host)

        async def first_change():
            stream = gateway.brightness_change_stream()
            host.simulate_external_change(0.6)
            return await next_value(stream)

        async def later_change(stream):
            return await next_value(stream)

        assert asyncio.run(first_change()) == 0.6
        stream = gateway.brightness_change_stream()
        host.simulate_external_change(0.9)

        assert asyncio.run(later_change(stream)) == 0.9
