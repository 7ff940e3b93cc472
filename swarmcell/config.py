"""Per-platform build profiles: capabilities, table sizes, packet format and timing."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Platform(str, Enum):
    """Target hardware families."""

    X86 = "x86"
    ESP32 = "esp32"
    RP2040 = "rp2040"
    STM32 = "stm32"
    NRF52 = "nrf52"
    LORA = "lora"
    MINIMAL = "minimal"


class ProfileName(str, Enum):
    """Resource profiles that set table sizes and features."""

    FULL = "full"
    STANDARD = "standard"
    LITE = "lite"
    MINIMAL = "minimal"


@dataclass(frozen=True)
class Timing:
    """Heartbeat, timeout and sleep intervals in milliseconds."""

    heartbeat_interval_ms: int
    hello_interval_ms: int
    quorum_check_ms: int
    neighbor_timeout_ms: int
    queen_timeout_ms: int
    election_timeout_ms: int
    sleep_idle_ms: int | None = None
    sleep_deep_ms: int | None = None
    wake_on_radio: bool = False


@dataclass(frozen=True)
class NodeConfig:
    """Everything a node build is configured with."""

    platform: Platform
    profile: ProfileName
    capabilities: frozenset[str]
    features: frozenset[str]
    tick_ms: int
    deep_sleep: bool
    compact_packets: bool
    no_float: bool
    neighbor_table_size: int
    route_cache_size: int
    kv_store_size: int
    kv_key_size: int
    kv_value_size: int
    max_pending_tasks: int
    max_active_jobs: int
    max_job_chunks: int
    gossip_cache_size: int
    bloom_filter_size: int
    max_active_events: int
    maze_size: int
    terrain_size: int
    visited_history_size: int
    heap_size: int
    packet_payload_size: int
    packet_total_size: int
    hmac_size: int
    timing: Timing
    debug: bool
    log_packets: bool
    log_state: bool
    assert_enabled: bool
    max_sensors: int = 4


@dataclass(frozen=True)
class _PlatformSpec:
    profile: ProfileName
    capabilities: frozenset[str]
    tick_ms: int
    deep_sleep: bool = False
    compact_packets: bool = False
    no_float: bool = False


_PLATFORMS = {
    Platform.X86: _PlatformSpec(
        ProfileName.FULL,
        frozenset({"vga", "keyboard", "serial", "ethernet", "timer_pit"}),
        tick_ms=10,
    ),
    Platform.ESP32: _PlatformSpec(
        ProfileName.STANDARD,
        frozenset({"serial", "wifi", "espnow", "ble", "nvs", "freertos"}),
        tick_ms=10,
        deep_sleep=True,
    ),
    Platform.RP2040: _PlatformSpec(
        ProfileName.STANDARD,
        frozenset({"serial", "spi_radio", "flash"}),
        tick_ms=10,
    ),
    Platform.STM32: _PlatformSpec(
        ProfileName.STANDARD,
        frozenset({"serial", "spi_radio", "can"}),
        tick_ms=10,
    ),
    Platform.NRF52: _PlatformSpec(
        ProfileName.STANDARD,
        frozenset({"serial", "ble_mesh", "thread", "flash"}),
        tick_ms=10,
        deep_sleep=True,
    ),
    Platform.LORA: _PlatformSpec(
        ProfileName.LITE,
        frozenset({"serial", "lora", "flash"}),
        tick_ms=100,
        deep_sleep=True,
        compact_packets=True,
    ),
    Platform.MINIMAL: _PlatformSpec(
        ProfileName.MINIMAL,
        frozenset({"serial", "spi_radio"}),
        tick_ms=100,
        compact_packets=True,
        no_float=True,
    ),
}

_LIMIT_FIELDS = (
    "neighbor_table_size",
    "route_cache_size",
    "kv_store_size",
    "kv_key_size",
    "kv_value_size",
    "max_pending_tasks",
    "max_active_jobs",
    "max_job_chunks",
    "gossip_cache_size",
    "bloom_filter_size",
    "max_active_events",
    "maze_size",
    "terrain_size",
    "visited_history_size",
    "heap_size",
)

_PROFILE_LIMITS = {
    ProfileName.FULL: (16, 32, 16, 16, 32, 8, 4, 16, 64, 256, 8, 32, 64, 256, 64 * 1024),
    ProfileName.STANDARD: (8, 16, 8, 8, 16, 4, 2, 8, 32, 128, 4, 16, 32, 64, 16 * 1024),
    ProfileName.LITE: (4, 8, 4, 8, 8, 2, 1, 4, 16, 64, 2, 0, 0, 0, 4 * 1024),
    ProfileName.MINIMAL: (2, 4, 2, 4, 4, 0, 0, 0, 8, 32, 0, 0, 0, 0, 1 * 1024),
}

_PROFILE_FEATURES = {
    ProfileName.FULL: frozenset({"terrain", "maze", "compute", "tactical", "kv", "tasks"}),
    ProfileName.STANDARD: frozenset({"compute", "tactical", "kv", "tasks"}),
    ProfileName.LITE: frozenset({"tactical", "kv"}),
    ProfileName.MINIMAL: frozenset(),
}


def timing_for(deep_sleep: bool) -> Timing:
    """Timing for battery-powered (deep sleep) or mains-powered nodes."""
    if deep_sleep:
        heartbeat, hello, quorum = 5000, 15000, 30000
    else:
        heartbeat, hello, quorum = 1000, 5000, 10000
    return Timing(
        heartbeat_interval_ms=heartbeat,
        hello_interval_ms=hello,
        quorum_check_ms=quorum,
        neighbor_timeout_ms=heartbeat * 5,
        queen_timeout_ms=heartbeat * 10,
        election_timeout_ms=heartbeat * 3,
        sleep_idle_ms=100 if deep_sleep else None,
        sleep_deep_ms=1000 if deep_sleep else None,
        wake_on_radio=bool(deep_sleep),
    )


def config_for(platform: Platform | str = Platform.X86) -> NodeConfig:
    """Build the configuration for a platform; raises ValueError for unknown ones."""
    platform = Platform(platform)
    spec = _PLATFORMS[platform]
    limits = dict(zip(_LIMIT_FIELDS, _PROFILE_LIMITS[spec.profile]))

    if spec.compact_packets:
        payload, total, hmac = 8, 24, 4
    else:
        payload, total, hmac = 32, 64, 8

    debug = spec.profile is ProfileName.FULL
    return NodeConfig(
        platform=platform,
        profile=spec.profile,
        capabilities=spec.capabilities,
        features=_PROFILE_FEATURES[spec.profile],
        tick_ms=spec.tick_ms,
        deep_sleep=spec.deep_sleep,
        compact_packets=spec.compact_packets,
        no_float=spec.no_float,
        packet_payload_size=payload,
        packet_total_size=total,
        hmac_size=hmac,
        timing=timing_for(spec.deep_sleep),
        debug=debug,
        log_packets=debug,
        log_state=debug,
        assert_enabled=debug,
        **limits,
    )