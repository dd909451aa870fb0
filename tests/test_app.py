"""Application wiring"""

from unittest.mock import Mock

import pytest
from cryptography.fernet import Fernet

from maidrive.app import MaiDriveApp, build_token_store
from maidrive.auth.session import Route
from maidrive.auth.token_store import FileTokenStore, MemoryTokenStore
from maidrive.auth.workflow import AuthPhase
from maidrive.i18n.language import Language
from maidrive.models.auth import RequestVerificationResponse, VerifyCodeResponse
from maidrive.utils.config import Settings


@pytest.fixture
def settings(tmp_path):
    return Settings(
        api={"base_url": "http://localhost:5399", "platform": "android",
             "platform_urls": {"android": "http://10.0.2.2:5399"}},
        storage={"data_dir": str(tmp_path / "data"), "token_key": Fernet.generate_key().decode()},
        logging={"file_path": str(tmp_path / "logs" / "maidrive.log"), "format": "console"},
        i18n={"default_language": "en"},
    )


def test_build_token_store(settings):
    assert isinstance(build_token_store(settings), FileTokenStore)
    settings.storage.persist_token = False
    assert isinstance(build_token_store(settings), MemoryTokenStore)


def test_initialize_wires_components(settings):
    app = MaiDriveApp(settings=settings).initialize()

    assert app.api.base_url == "http://10.0.2.2:5399/api/"
    assert app.api.token_store is app.token_store
    assert app.workflow.session is app.session
    assert app.language.current is Language.ENGLISH
    assert app.route() == Route.AUTH
    assert app.workflow.phase == AuthPhase.AWAITING_PHONE
    app.close()


def test_stored_token_restores_main_route(settings):
    first = MaiDriveApp(settings=settings).initialize()
    first.token_store.save("persisted-token")
    first.close()

    second = MaiDriveApp(settings=settings).initialize()

    assert second.workflow.phase == AuthPhase.AUTHENTICATED
    assert second.route() == Route.MAIN

    second.logout()
    assert second.route() == Route.AUTH
    second.close()


def test_full_sign_in_for_returning_user(settings):
    app = MaiDriveApp(settings=settings).initialize()
    app.api.session = Mock()
    app.api.session.post.side_effect = [
        Mock(status_code=200, json=Mock(return_value=RequestVerificationResponse(
            verification_code="123456", phone_number="+93700123456").to_payload())),
        Mock(status_code=200, json=Mock(return_value=VerifyCodeResponse(
            token="jwt", user_id="u-1", requires_registration=False).to_payload())),
    ]

    app.workflow.submit_phone("0700123456")
    app.workflow.submit_code("123456")

    assert app.route() == Route.MAIN
    # The code request went out before any token existed
    first_headers = app.api.session.post.call_args_list[0].kwargs["headers"]
    assert "Authorization" not in first_headers
    app.close()
