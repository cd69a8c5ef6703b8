from __future__ import annotations
import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional
from logger import log

SSH_PORT = 22
CSYNC2_PORT = 30865


@dataclass
class CheckResult:
    label: str
    target: str
    port: Optional[int]
    passed: bool
    error: str = ""

    @property
    def status_icon(self) -> str:
        return "✓" if self.passed else "✗"

    def __str__(self) -> str:
        port_str = f":{self.port}" if self.port else ""
        status = "PASS" if self.passed else f"FAIL ({self.error})"
        return f"[{self.status_icon}] {self.label}: {self.target}{port_str} -> {status}"


async def check_tcp(
    host: str, port: int, *, label: str, timeout: float = 5.0
) -> CheckResult:
    error = ""
    try:
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port), timeout=timeout
        )
        writer.close()
        await writer.wait_closed()
    except asyncio.TimeoutError:
        error = "timeout"
    except ConnectionRefusedError:
        error = "connection refused"
    except OSError as e:
        error = str(e)
    result = CheckResult(label=label, target=host, port=port,
                         passed=not error, error=error)
    if error:
        log.warning("TCP check to %s:%s failed: %s", host, port, error)
    else:
        log.info("TCP check to %s:%s passed", host, port)
    return result


async def check_icmp(host: str, *, label: str, timeout: float = 3.0) -> CheckResult:
    """Single ping with `timeout` seconds to answer."""
    error = ""
    try:
        proc = await asyncio.create_subprocess_exec(
            "ping", "-c1", f"-W{int(timeout)}", host,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
        if await asyncio.wait_for(proc.wait(), timeout=timeout + 2) != 0:
            error = "no response"
    except asyncio.TimeoutError:
        error = "timeout"
    except OSError as e:
        error = str(e)
    if error:
        log.warning("Ping to %s failed: %s", host, error)
    else:
        log.info("Ping to %s passed", host)
    return CheckResult(label=label, target=host, port=None,
                       passed=not error, error=error)


def build_check_matrix(hosts: List[str]) -> List[dict]:
    """
    Checks needed before joining or syncing with another node.
    Each dict: {label, host, port (None=ICMP), type ('tcp'|'icmp')}
    """
    checks: List[dict] = []
    for host in hosts:
        checks.append({
            "label": f"Node reachable ({host})",
            "host": host, "port": None, "type": "icmp",
        })
        checks.append({
            "label": f"SSH ({host})",
            "host": host, "port": SSH_PORT, "type": "tcp",
        })
        checks.append({
            "label": f"csync2 ({host})",
            "host": host, "port": CSYNC2_PORT, "type": "tcp",
        })
    return checks


async def run_all_checks(
    checks: List[dict],
    timeout: float = 5.0,
    progress_callback: Optional[Callable[[int, int], Awaitable[None]]] = None,
) -> List[CheckResult]:
    total = len(checks)
    results: List[CheckResult] = []

    async def _run_one(c: dict) -> CheckResult:
        if c["type"] == "icmp":
            return await check_icmp(c["host"], label=c["label"], timeout=timeout)
        return await check_tcp(c["host"], c["port"], label=c["label"], timeout=timeout)

    tasks = [asyncio.create_task(_run_one(c)) for c in checks]
    for i, coro in enumerate(asyncio.as_completed(tasks), 1):
        result = await coro
        results.append(result)
        if progress_callback:
            await progress_callback(i, total)

    return results
