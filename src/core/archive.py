"""
Packager: 산출물 → 단일 ZIP 아카이브

규칙:
- 엔트리 이름 고유 (대소문자 무시): 충돌 시 결정론적 접미사 (_2, _3, ...)
- 입력 순서 = 아카이브 삽입 순서
- seal() 이후 변경 불가
"""

import io
import logging
import zipfile
from collections.abc import Iterable
from pathlib import PurePosixPath

from src.domain.schemas import Artifact

logger = logging.getLogger(__name__)


class ArchiveSealedError(RuntimeError):
    """seal() 이후 엔트리 추가 시도."""


class Archive:
    """
    (이름, bytes) 엔트리의 순서 있는 모음.

    Usage:
        archive = Archive()
        archive.add(artifact)
        data = archive.seal()
    """

    def __init__(self) -> None:
        self._entries: list[tuple[str, bytes]] = []
        self._names: set[str] = set()  # casefold
        self._sealed: bytes | None = None

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self._entries]

    @property
    def entries(self) -> list[tuple[str, bytes]]:
        return list(self._entries)

    @property
    def is_sealed(self) -> bool:
        return self._sealed is not None

    def add(self, artifact: Artifact) -> str:
        """
        엔트리 추가.

        Returns:
            실제 저장된 엔트리 이름 (충돌 시 접미사 포함)

        Raises:
            ArchiveSealedError: seal() 이후 호출
        """
        if self._sealed is not None:
            raise ArchiveSealedError("archive is sealed")

        name = self._unique_name(artifact.name)
        if name != artifact.name:
            logger.info(f"Archive entry renamed: {artifact.name} -> {name}")

        self._entries.append((name, artifact.content))
        self._names.add(name.casefold())
        return name

    def _unique_name(self, name: str) -> str:
        if name.casefold() not in self._names:
            return name

        path = PurePosixPath(name)
        stem, suffix = path.stem, path.suffix
        counter = 2
        while True:
            candidate = f"{stem}_{counter}{suffix}"
            if candidate.casefold() not in self._names:
                return candidate
            counter += 1

    def seal(self) -> bytes:
        """
        ZIP bytes 생성 (DEFLATE). 여러 번 호출해도 같은 bytes 반환.
        """
        if self._sealed is None:
            buffer = io.BytesIO()
            with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
                for name, content in self._entries:
                    zf.writestr(name, content)
            self._sealed = buffer.getvalue()
        return self._sealed


def pack(artifacts: Iterable[Artifact]) -> Archive:
    """
    산출물 목록을 아카이브로 묶는다.

    Args:
        artifacts: 렌더 결과 (입력 순서)

    Returns:
        sealed Archive
    """
    archive = Archive()
    for artifact in artifacts:
        archive.add(artifact)
    archive.seal()
    return archive


def unpack(data: bytes) -> list[tuple[str, bytes]]:
    """ZIP bytes → (이름, bytes) 목록 (삽입 순서)."""
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        return [(info.filename, zf.read(info)) for info in zf.infolist()]
