"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from lorebuild.config import BuildConfig
from lorebuild.vault.loader import Vault, load_vault


def write_note(path: Path, lines: list[str]) -> Path:
    """Write a markdown note, creating parent folders."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def fixture_vault_path() -> Path:
    """Path to the sample Exilium vault."""
    return Path(__file__).parent / "fixtures" / "exilium_vault"


@pytest.fixture
def fixture_config(fixture_vault_path: Path, tmp_path: Path) -> BuildConfig:
    """Config reading the sample vault and writing under tmp_path."""
    return BuildConfig(
        vault_path=fixture_vault_path,
        output_dir=tmp_path / "src" / "content",
        public_dir=tmp_path / "public" / "content",
    )


@pytest.fixture
def fixture_vault(fixture_vault_path: Path, fixture_config: BuildConfig) -> Vault:
    """Load the sample vault."""
    return load_vault(fixture_vault_path, fixture_config)


@pytest.fixture
def scenario_vault(tmp_path: Path) -> Path:
    """Two-document vault: Veraheim (with a secret) linking to Aelindor."""
    vault = tmp_path / "vault"
    write_note(
        vault / "02-Geography" / "Veraheim.md",
        [
            "# Veraheim",
            "",
            "## At a Glance",
            "",
            "A city of refuge. See [[Aelindor]].",
            "",
            "## Secret Knowledge",
            "",
            "Secretly allied with the drow.",
        ],
    )
    write_note(vault / "04-Factions" / "Aelindor.md", ["# Aelindor"])
    return vault
