import os
import tempfile

# Settings and logging are read at import time, so the environment has to
# be in place before anything under backend/ is imported.
_TMP_DIR = tempfile.mkdtemp(prefix="vaultgate-tests-")

TEST_KEY = "0123456789abcdef" * 4

os.environ["ENCRYPTION_KEY"] = TEST_KEY
os.environ["SECRET_KEY"] = "test-secret-key-for-jwt-signing-only-0123456789"
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'vaultgate.db')}"
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["SCAN_DELAY_MS"] = "0"
os.environ["RATE_LIMIT_ENABLED"] = "true"
os.environ["VAULTGATE_LOG_DIR"] = os.path.join(_TMP_DIR, "log")

import pytest  # noqa: E402


@pytest.fixture
def encryption():
    from core.security import EncryptionService

    return EncryptionService(TEST_KEY)


@pytest.fixture
def app():
    """The application with fresh tables, storage and rate-limit counters."""
    import main
    import models.audit_log  # noqa: F401
    import models.stored_file  # noqa: F401
    from database import Base, engine
    from ratelimit.limiter import FixedWindowRateLimiter, MemoryRateLimitStore
    from storage.memory import InMemoryObjectStorage
    from upload.pipeline import SecureUploadPipeline
    from upload.scanner import SignatureThreatScanner

    Base.metadata.create_all(engine)
    main.app.state.rate_limiter = FixedWindowRateLimiter(MemoryRateLimitStore())
    main.app.state.upload_pipeline = SecureUploadPipeline(
        main.app.state.encryption_service,
        InMemoryObjectStorage(),
        scanner=SignatureThreatScanner(delay_seconds=0),
    )
    yield main.app
    Base.metadata.drop_all(engine)


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers():
    from core.security import create_access_token

    token = create_access_token({"sub": "admin@example.com", "role": "admin"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers():
    from core.security import create_access_token

    token = create_access_token({"sub": "reader@example.com", "role": "user"})
    return {"Authorization": f"Bearer {token}"}
