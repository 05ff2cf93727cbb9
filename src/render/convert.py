"""
문서 변환기: DOCX → 최종 형식 (PDF).

- LibreOfficeConverter: headless soffice 외부 프로세스, 호출마다 별도 프로필 디렉터리
- PassthroughConverter: 변환 없음 (DOCX 그대로, 테스트/docx 출력용)

변환기는 작업 디렉터리를 인자로 받고, 출력은 입력 옆(같은 디렉터리)에 생성.
"""

import logging
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Protocol

from src.domain.constants import DEFAULT_CONVERTER_BINARY, DEFAULT_CONVERTER_TIMEOUT_SECONDS
from src.domain.errors import ErrorCodes, RenderError

logger = logging.getLogger(__name__)


class DocumentConverter(Protocol):
    """변환기 인터페이스."""

    output_extension: str

    def convert(self, source: Path, workdir: Path) -> Path:
        """source를 변환해 workdir 안의 출력 파일 경로 반환."""
        ...


class PassthroughConverter:
    """변환하지 않고 DOCX를 그대로 출력."""

    output_extension = "docx"

    def convert(self, source: Path, workdir: Path) -> Path:
        if not source.exists():
            raise RenderError(
                ErrorCodes.CONVERSION_NO_OUTPUT,
                RenderError.CONVERSION_FAILED,
                path=str(source),
            )
        return source


class LibreOfficeConverter:
    """
    LibreOffice (soffice) headless 변환기.

    Usage:
        converter = LibreOfficeConverter(timeout=60)
        pdf_path = converter.convert(docx_path, workdir)
    """

    def __init__(
        self,
        binary: str = DEFAULT_CONVERTER_BINARY,
        timeout: float = DEFAULT_CONVERTER_TIMEOUT_SECONDS,
        target: str = "pdf",
    ) -> None:
        self.binary = binary
        self.timeout = timeout
        self.target = target
        self.output_extension = target

    def _resolve_binary(self) -> str:
        resolved = shutil.which(self.binary)
        if not resolved:
            raise RenderError(
                ErrorCodes.CONVERTER_NOT_FOUND,
                RenderError.CONVERSION_FAILED,
                binary=self.binary,
            )
        return resolved

    def build_command(self, binary: str, source: Path, workdir: Path, profile_dir: Path) -> list[str]:
        return [
            binary,
            "--headless",
            "--nologo",
            "--nofirststartwizard",
            f"-env:UserInstallation={profile_dir.as_uri()}",
            "--convert-to",
            self.target,
            "--outdir",
            str(workdir),
            str(source),
        ]

    def convert(self, source: Path, workdir: Path) -> Path:
        """
        Raises:
            RenderError: conversion_failed (바이너리 없음, 타임아웃, 비정상 종료, 출력 없음)
        """
        binary = self._resolve_binary()
        output_path = workdir / f"{source.stem}.{self.target}"

        # 호출마다 프로필 분리 (프로필 잠금/상태 공유 방지)
        with tempfile.TemporaryDirectory(prefix="lo_profile_", dir=workdir) as profile_dir:
            cmd = self.build_command(binary, source, workdir, Path(profile_dir))
            try:
                p = subprocess.run(
                    cmd,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.PIPE,
                    text=True,
                    timeout=self.timeout,
                )
            except subprocess.TimeoutExpired as e:
                raise RenderError(
                    ErrorCodes.CONVERSION_TIMEOUT,
                    RenderError.CONVERSION_FAILED,
                    source=source.name,
                    timeout=self.timeout,
                ) from e

        if p.returncode != 0:
            raise RenderError(
                ErrorCodes.CONVERSION_FAILED,
                RenderError.CONVERSION_FAILED,
                source=source.name,
                returncode=p.returncode,
                error=p.stderr.strip() or p.stdout.strip(),
            )

        if not output_path.exists():
            raise RenderError(
                ErrorCodes.CONVERSION_NO_OUTPUT,
                RenderError.CONVERSION_FAILED,
                source=source.name,
                expected=output_path.name,
            )

        logger.debug(f"Converted {source.name} -> {output_path.name}")
        return output_path


def create_converter(
    output_format: str,
    binary: str = DEFAULT_CONVERTER_BINARY,
    timeout: float = DEFAULT_CONVERTER_TIMEOUT_SECONDS,
) -> DocumentConverter:
    """출력 형식에 맞는 변환기 생성 (docx → Passthrough, 그 외 → LibreOffice)."""
    if output_format == "docx":
        return PassthroughConverter()
    return LibreOfficeConverter(binary=binary, timeout=timeout, target=output_format)
