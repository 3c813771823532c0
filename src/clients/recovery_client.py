from __future__ import annotations

import httpx

from core.errors import ExternalServiceError, ValidationError
from core.interfaces import BalanceResolver


class RecoveryClient:
    # Remote discrete-log service: POST {base}/recover {"point": key} -> {"balance": int}
    def __init__(self, *, base_url: str, timeout: float, verify: bool = False) -> None:
        self._base_url = (base_url or "").rstrip("/")
        self._timeout = timeout
        self._verify = verify

    async def recover(self, key: str) -> int:
        k = (key or "").strip()
        if not k:
            raise ValidationError("Point key is empty")

        url = f"{self._base_url}/recover"

        try:
            async with httpx.AsyncClient(timeout=self._timeout, verify=self._verify) as c:
                r = await c.post(url, json={"point": k})
                r.raise_for_status()
                payload = r.json()
        except httpx.HTTPStatusError as e:
            raise ExternalServiceError(f"Recovery service returned an error: {e}") from e
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"Failed to call recovery service: {e}") from e
        except ValueError as e:
            raise ExternalServiceError("Recovery service returned invalid JSON") from e

        balance = payload.get("balance") if isinstance(payload, dict) else None
        # bool is an int subclass; reject it explicitly
        if isinstance(balance, bool) or not isinstance(balance, int):
            raise ExternalServiceError(f"Recovery service returned no integer balance: {payload!r}")
        return balance

    def resolver_for(self, key: str) -> BalanceResolver:
        async def _resolve() -> int:
            return await self.recover(key)

        return _resolve
