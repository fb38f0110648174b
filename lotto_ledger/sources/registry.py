"""Build configured draw sources in priority order."""

from __future__ import annotations

from lotto_ledger.common.config_loader import ConfigBundle, enabled_sources
from lotto_ledger.common.http import HttpClient, RetryConfig, TimeoutConfig
from lotto_ledger.sources.http_source import DEFAULT_PROBE_CEILING, DEFAULT_PROBE_LIMIT, HttpJsonSource


def build_http_client(sync_config: dict) -> HttpClient:
    http_cfg = sync_config["http"]
    timeout_cfg = http_cfg["timeout"]
    retry_cfg = http_cfg["retry"]
    return HttpClient(
        timeout=TimeoutConfig(
            connect=float(timeout_cfg["connect"]),
            read=float(timeout_cfg["read"]),
            read_increment=float(timeout_cfg.get("read_increment", 5)),
        ),
        retry=RetryConfig(
            max_attempts=int(retry_cfg["max_attempts"]),
            multiplier=float(retry_cfg.get("multiplier", 0.5)),
            max_wait=float(retry_cfg.get("max_wait", 5)),
        ),
    )


def build_sources(bundle: ConfigBundle, http_client: HttpClient) -> list[HttpJsonSource]:
    sync_cfg = bundle.sync["sync"]
    probe_limit = int(sync_cfg.get("probe_limit", DEFAULT_PROBE_LIMIT))
    probe_ceiling = int(sync_cfg.get("probe_ceiling", DEFAULT_PROBE_CEILING))

    sources = []
    for source_cfg in enabled_sources(bundle):
        if "rate_per_sec" in source_cfg:
            for url in source_cfg["endpoints"].values():
                http_client.limiter.set_rate(http_client.host(url), float(source_cfg["rate_per_sec"]))
        sources.append(
            HttpJsonSource(
                source_cfg["name"],
                source_cfg,
                http_client,
                probe_limit=probe_limit,
                probe_ceiling=probe_ceiling,
            )
        )
    return sources
