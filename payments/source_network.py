"""
Проверка источника ITN: IP заявленного хоста должен входить в множество адресов,
в которые сейчас резолвятся известные хосты PayFast.

Проверяется транспортный источник, а не подлинность запроса: заголовок можно
подделать, поэтому проверка используется только вместе с подписью и подтверждением.
"""
import logging
import socket
import threading
from typing import Callable, FrozenSet, Iterable, List, Optional
from urllib.parse import urlsplit
from payments.exceptions import TransportError, TransportTimeoutError

logger = logging.getLogger(__name__)

# Production и sandbox хосты PayFast (не настраиваются)
TRUSTED_HOSTNAMES = (
    "www.payfast.co.za",
    "sandbox.payfast.co.za",
    "w1w.payfast.co.za",
    "w2w.payfast.co.za",
)

Resolver = Callable[[str], List[str]]

# getaddrinfo не умеет таймаут: каждый запрос идёт в отдельном daemon-потоке,
# число одновременно висящих запросов ограничено
MAX_INFLIGHT_LOOKUPS = 32
_lookup_slots = threading.BoundedSemaphore(MAX_INFLIGHT_LOOKUPS)


def system_resolver(hostname: str) -> List[str]:
    """Все адреса хоста в порядке, который вернул системный резолвер."""
    infos = socket.getaddrinfo(hostname, None, type=socket.SOCK_STREAM)
    addresses = []
    for info in infos:
        address = info[4][0]
        if address not in addresses:
            addresses.append(address)
    return addresses


def resolve_host(hostname: str, timeout: float, resolver: Resolver = system_resolver) -> List[str]:
    """
    Резолвит хост с ограничением по времени.

    Отсчёт таймаута начинается при старте запроса. Поток зависшего запроса держит
    слот до своего завершения; если свободных слотов нет - сразу TransportError.

    Raises:
        TransportTimeoutError: резолвер не ответил за timeout секунд
        TransportError: ошибка DNS, пустой ответ или нет свободного слота
    """
    slots = _lookup_slots
    if not slots.acquire(blocking=False):
        raise TransportError(
            f"DNS lookup for {hostname} rejected: {MAX_INFLIGHT_LOOKUPS} lookups already in flight",
            {"hostname": hostname}
        )

    result = {}
    done = threading.Event()

    def run():
        try:
            result["addresses"] = resolver(hostname)
        except Exception as e:
            result["error"] = e
        finally:
            slots.release()
            done.set()

    threading.Thread(target=run, name=f"itn-dns-{hostname}", daemon=True).start()

    if not done.wait(timeout):
        raise TransportTimeoutError(
            f"DNS lookup for {hostname} timed out after {timeout}s",
            {"hostname": hostname, "timeout": timeout}
        )

    error = result.get("error")
    if isinstance(error, (OSError, UnicodeError)):
        raise TransportError(f"DNS lookup for {hostname} failed: {error}", {"hostname": hostname}) from error
    if error is not None:
        raise error

    addresses = result.get("addresses")
    if not addresses:
        raise TransportError(f"DNS lookup for {hostname} returned no addresses", {"hostname": hostname})
    return list(addresses)


def normalize_host(claimed_host: str) -> str:
    """
    Убирает схему, путь и порт: 'https://w1w.payfast.co.za:443/eng' -> 'w1w.payfast.co.za'.
    """
    host = (claimed_host or "").strip()
    for prefix in ("http://", "https://"):
        if host.startswith(prefix):
            host = host[len(prefix):]
    host = host.split("/")[0]
    if not host:
        return ""
    try:
        parsed = urlsplit("//" + host).hostname
    except ValueError:
        parsed = None
    return parsed or host


class SourceNetworkValidator:
    def __init__(
        self,
        trusted_hostnames: Iterable[str] = TRUSTED_HOSTNAMES,
        timeout: float = 5.0,
        resolver: Resolver = system_resolver
    ):
        self.trusted_hostnames = tuple(trusted_hostnames)
        self.timeout = timeout
        self.resolver = resolver

    def trusted_host_set(self) -> FrozenSet[str]:
        """
        Множество IP доверенных хостов. Каждый вызов - свежие DNS-запросы, без кэша.
        Хост, который не удалось разрезолвить, пропускается.
        """
        addresses = set()
        for hostname in self.trusted_hostnames:
            try:
                addresses.update(resolve_host(hostname, self.timeout, self.resolver))
            except TransportError as e:
                logger.warning(f"Skipping trusted host {hostname}: {e.message}")
        return frozenset(addresses)

    def origin_address(self, claimed_host: str) -> Optional[str]:
        """Первый адрес заявленного хоста или None, если резолв не удался."""
        host = normalize_host(claimed_host)
        if not host:
            logger.warning("ITN origin host is empty")
            return None
        try:
            return resolve_host(host, self.timeout, self.resolver)[0]
        except TransportError as e:
            logger.warning(f"Cannot resolve ITN origin host {host}: {e.message}")
            return None

    def is_trusted(self, claimed_host: str) -> bool:
        """
        Проверяет, что первый IP заявленного хоста входит в множество доверенных адресов.
        Никогда не бросает исключение: любой сбой означает "не доверенный".
        """
        origin_ip = self.origin_address(claimed_host)
        if origin_ip is None:
            return False

        trusted = self.trusted_host_set()
        if origin_ip in trusted:
            return True

        logger.info(f"ITN origin {claimed_host} ({origin_ip}) is not among {len(trusted)} trusted PayFast addresses")
        return False
