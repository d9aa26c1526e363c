from __future__ import annotations

import os
import shutil
import sys
import tempfile
import zipfile
from dataclasses import dataclass
from pathlib import Path

import requests
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TimeRemainingColumn,
)

DEFAULT_UNIDIC_URL = "https://clrd.ninjal.ac.jp/unidic_archive/cwj/3.1.1/unidic-cwj-3.1.1-full.zip"
UNIDIC_VERSION = "3.1.1"
UNIDIC_ENV_VAR = "YOMI_UNIDIC_DIR"


class UniDicInstallError(RuntimeError):
    pass


@dataclass(slots=True)
class UniDicStatus:
    version: str | None
    path: Path | None
    managed: bool
    source: str | None = None


def managed_unidic_root() -> Path:
    return Path(sys.prefix) / "share" / "yomi" / "unidic"


def _managed_dir() -> Path:
    return managed_unidic_root() / UNIDIC_VERSION


def _has_dicrc(path: Path) -> bool:
    return (path / "dicrc").is_file()


def resolve_unidic() -> UniDicStatus:
    """Locate a UniDic dictionary: env override, managed copy, then the unidic package."""
    env_dir = os.environ.get(UNIDIC_ENV_VAR)
    if env_dir:
        candidate = Path(env_dir).expanduser()
        if _has_dicrc(candidate):
            return UniDicStatus(version=None, path=candidate, managed=False, source="env")
    managed = _managed_dir()
    if _has_dicrc(managed):
        return UniDicStatus(version=UNIDIC_VERSION, path=managed, managed=True, source="managed")
    try:
        import unidic  # type: ignore
    except ImportError:
        return UniDicStatus(version=None, path=None, managed=False)
    dicdir = Path(getattr(unidic, "DICDIR", ""))
    if str(dicdir) and _has_dicrc(dicdir):
        return UniDicStatus(version=getattr(unidic, "VERSION", None), path=dicdir, managed=False, source="package")
    return UniDicStatus(version=None, path=None, managed=False)


def get_unidic_dicdir() -> Path | None:
    return resolve_unidic().path


def ensure_unidic_installed(
    *,
    url: str | None = DEFAULT_UNIDIC_URL,
    zip_path: str | None = None,
    force: bool = False,
) -> UniDicStatus:
    target_dir = _managed_dir()
    if _has_dicrc(target_dir) and not force:
        return UniDicStatus(version=UNIDIC_VERSION, path=target_dir, managed=True, source="managed")

    archive_path = Path(zip_path) if zip_path else None
    if archive_path is not None and not archive_path.is_file():
        raise UniDicInstallError(f"Archive not found: {archive_path}")
    if archive_path is None:
        if url is None:
            raise UniDicInstallError("No download URL provided for UniDic installation.")
        archive_path = _download_archive(url, managed_unidic_root() / "downloads")

    with tempfile.TemporaryDirectory() as tmpdir:
        tmp_path = Path(tmpdir)
        try:
            with zipfile.ZipFile(archive_path) as zf:
                zf.extractall(tmp_path)
        except zipfile.BadZipFile as exc:
            raise UniDicInstallError(f"Not a zip archive: {archive_path}") from exc
        dic_root = next((path.parent for path in tmp_path.rglob("dicrc")), None)
        if dic_root is None:
            raise UniDicInstallError("Failed to locate dicrc inside the UniDic archive.")
        if target_dir.exists():
            shutil.rmtree(target_dir)
        target_dir.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(dic_root), str(target_dir))
    return UniDicStatus(version=UNIDIC_VERSION, path=target_dir, managed=True, source="managed")


def _download_archive(url: str, downloads: Path) -> Path:
    downloads.mkdir(parents=True, exist_ok=True)
    archive_path = downloads / (url.rstrip("/").split("/")[-1] or "unidic.zip")
    try:
        response = requests.get(url, stream=True, timeout=60)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise UniDicInstallError(f"Failed to download UniDic archive: {exc}") from exc

    total = response.headers.get("Content-Length")
    progress = Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        TimeRemainingColumn(),
        transient=True,
    )
    with archive_path.open("wb") as handle, progress:
        task = progress.add_task(
            f"Downloading UniDic {UNIDIC_VERSION}",
            total=int(total) if total and total.isdigit() else None,
        )
        for chunk in response.iter_content(chunk_size=1024 * 1024):
            if chunk:
                handle.write(chunk)
                progress.advance(task, len(chunk))
    return archive_path
