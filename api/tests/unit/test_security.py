from __future__ import annotations

import pytest

from app.core.security import SyncTokenVerifier, get_sync_token_verifier


def test_matching_token_is_accepted() -> None:
    assert SyncTokenVerifier("secret").verify("secret") is True


@pytest.mark.parametrize("token", [None, "", "secreT", "secret-but-longer", "ñandú"])
def test_other_tokens_are_rejected(token) -> None:
    assert SyncTokenVerifier("secret").verify(token) is False


def test_unconfigured_server_rejects_everything() -> None:
    verifier = SyncTokenVerifier("")

    assert verifier.is_configured() is False
    assert verifier.verify("") is False
    assert verifier.verify("anything") is False


def test_verifier_reads_current_settings(sync_token: str) -> None:
    assert get_sync_token_verifier().verify(sync_token) is True
