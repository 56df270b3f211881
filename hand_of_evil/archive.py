import hashlib
import pathlib
import tarfile
import zipfile

from .errors import ArchiveChecksumError, ConfigError

ARCHIVE_MD5 = "c1dd086f15a91bfa08c30530d0ff1e6f"
THEME_INDEX = "[Icon Theme]\nName={name}\nInherits=core\n"


def file_md5(path: pathlib.Path) -> str:
    digest = hashlib.md5()
    with pathlib.Path(path).open("rb") as handle:
        for chunk in iter(lambda: handle.read(1 << 16), b""):
            digest.update(chunk)
    return digest.hexdigest()


def verify_archive(path: pathlib.Path, expected_md5: str = ARCHIVE_MD5) -> None:
    path = pathlib.Path(path)
    if not path.is_file():
        raise ArchiveChecksumError(f"{path} archive not found")
    if file_md5(path) != expected_md5.lower():
        raise ArchiveChecksumError(f"{path} archive checksum mismatch")


def extract_archive(path: pathlib.Path, destination: pathlib.Path) -> None:
    try:
        with zipfile.ZipFile(path) as archive:
            archive.extractall(destination)
    except zipfile.BadZipFile as exc:
        raise ConfigError(f"{path} is not a zip archive: {exc}") from exc


def write_theme_index(theme_dir: pathlib.Path, name: str) -> pathlib.Path:
    index_path = pathlib.Path(theme_dir) / "index.theme"
    index_path.write_text(THEME_INDEX.format(name=name), encoding="utf-8")
    return index_path


def package_theme(theme_dir: pathlib.Path, tarball: pathlib.Path) -> pathlib.Path:
    theme_dir = pathlib.Path(theme_dir)
    with tarfile.open(tarball, "w:gz") as archive:
        archive.add(theme_dir, arcname=theme_dir.name)
    return pathlib.Path(tarball)
