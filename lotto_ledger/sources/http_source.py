"""JSON-over-HTTP draw mirror."""

from __future__ import annotations

from typing import Any, Protocol

from lotto_ledger.common.draw import normalise_draw, resolve_fields
from lotto_ledger.common.errors import InvalidPayloadError, SourceError, UnsupportedOperationError
from lotto_ledger.common.http import HttpClient, HttpRequestError, RetryableHttpError
from lotto_ledger.common.models import DrawRecord

DEFAULT_PROBE_LIMIT = 50
DEFAULT_PROBE_CEILING = 100_000


class DrawSource(Protocol):
    name: str

    def fetch_all(self) -> list[DrawRecord]:
        ...

    def fetch_latest(self, *, after: int = 0) -> DrawRecord:
        ...

    def fetch_one(self, draw_no: int) -> DrawRecord:
        ...


class HttpJsonSource:
    """One mirror, reachable through up to three GET endpoint templates.

    ``fetch_latest`` uses the ``latest`` endpoint when configured. Mirrors that
    only serve draws by number are probed forward from ``after`` instead, and
    searched exponentially then by bisection when nothing is known locally.
    """

    def __init__(
        self,
        name: str,
        source_config: dict,
        http_client: HttpClient,
        *,
        probe_limit: int = DEFAULT_PROBE_LIMIT,
        probe_ceiling: int = DEFAULT_PROBE_CEILING,
    ) -> None:
        self.name = name
        self.endpoints: dict[str, str] = dict(source_config.get("endpoints") or {})
        self.fields = resolve_fields(source_config.get("fields"))
        self.require = dict(source_config.get("require") or {})
        self.bulk_items_key = source_config.get("bulk_items_key")
        self.client = http_client
        self.probe_limit = probe_limit
        self.probe_ceiling = probe_ceiling

    def __repr__(self) -> str:
        return f"HttpJsonSource(name={self.name!r})"

    def _endpoint(self, operation: str) -> str:
        url = self.endpoints.get(operation)
        if not url:
            raise UnsupportedOperationError(f"{self.name} has no '{operation}' endpoint")
        return url

    def _normalise(self, payload: Any, url: str) -> DrawRecord:
        record = normalise_draw(payload, self.fields, require=self.require)
        if record is None:
            raise InvalidPayloadError(f"{self.name} returned an unusable draw from {url}")
        return record

    def _bulk_items(self, payload: Any, url: str) -> list:
        if self.bulk_items_key:
            if not isinstance(payload, dict):
                raise InvalidPayloadError(f"{self.name} bulk payload is not an object: {url}")
            payload = payload.get(self.bulk_items_key)
        if not isinstance(payload, list) or not payload:
            raise InvalidPayloadError(f"{self.name} bulk payload has no draws: {url}")
        return payload

    def fetch_all(self) -> list[DrawRecord]:
        url = self._endpoint("all")
        items = self._bulk_items(self.client.get_json(url), url)
        records = [normalise_draw(item, self.fields, require=self.require) for item in items]
        invalid = sum(1 for record in records if record is None)
        if invalid:
            raise InvalidPayloadError(f"{self.name} bulk payload has {invalid} unusable draws: {url}")
        return sorted(records, key=lambda record: record.draw_no)

    def fetch_one(self, draw_no: int) -> DrawRecord:
        url = self._endpoint("one").format(draw_no=draw_no)
        record = self._normalise(self.client.get_json(url), url)
        if record.draw_no != draw_no:
            raise InvalidPayloadError(f"{self.name} answered draw {record.draw_no} for {draw_no}")
        return record

    def fetch_latest(self, *, after: int = 0) -> DrawRecord:
        if "latest" in self.endpoints:
            url = self._endpoint("latest")
            return self._normalise(self.client.get_json(url), url)
        if "one" not in self.endpoints:
            raise UnsupportedOperationError(f"{self.name} cannot determine the latest draw")
        if after > 0:
            return self._probe_forward(after)
        return self._search_latest()

    def _try_one(self, draw_no: int) -> DrawRecord | None:
        try:
            return self.fetch_one(draw_no)
        except RetryableHttpError:
            raise
        except (InvalidPayloadError, HttpRequestError):
            # Unpublished draws come back as a "fail" payload, a 404 or an HTML page.
            return None

    def _probe_forward(self, after: int) -> DrawRecord:
        best: DrawRecord | None = None
        for draw_no in range(after, after + self.probe_limit + 1):
            record = self._try_one(draw_no)
            if record is None:
                break
            best = record
        if best is None:
            raise SourceError(f"{self.name} has no draw at or after {after}")
        return best

    def _search_latest(self) -> DrawRecord:
        low_record: DrawRecord | None = None
        low, high = 0, 1
        while True:
            record = self._try_one(high)
            if record is None:
                break
            low, low_record = high, record
            high *= 2
            if high > self.probe_ceiling:
                raise SourceError(f"{self.name} reported draws beyond {self.probe_ceiling}")

        lo, hi = low + 1, high - 1
        while lo <= hi:
            mid = (lo + hi) // 2
            record = self._try_one(mid)
            if record is None:
                hi = mid - 1
            else:
                low_record = record
                lo = mid + 1

        if low_record is None:
            raise SourceError(f"{self.name} has no published draws")
        return low_record
