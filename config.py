import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _env(name: str, default: str = "") -> str:
    return os.getenv(name, default)


def _env_float(name: str, default: float) -> float:
    return float(_env(name, str(default)))


def _strip_trailing_slash(url: str) -> str:
    return url.rstrip("/")


@dataclass
class Config:
    # Upstream endpoints
    session_url: str = "https://labs.google/fx/api/auth/session"
    auth_test_url: str = "https://labs.google/fx/api/trpc/general.fetchUserPreferences"
    workflow_url: str = "https://labs.google/fx/api/trpc/media.createOrUpdateWorkflow"
    upload_url: str = "https://labs.google/fx/api/trpc/backbone.uploadImage"
    generate_url: str = "https://aisandbox-pa.googleapis.com/v1/whisk:generateImage"
    project_url: str = "https://labs.google/fx/tools/whisk/project"

    request_timeout: float = 300.0

    # Output
    file_prefix: str = "whisk"
    default_save_folder: str = ""

    # Paths
    accounts_path: str = "accounts.json"

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        return cls(
            session_url=_env("WHISK_SESSION_URL", cls.session_url),
            auth_test_url=_env("WHISK_AUTH_TEST_URL", cls.auth_test_url),
            workflow_url=_env("WHISK_WORKFLOW_URL", cls.workflow_url),
            upload_url=_env("WHISK_UPLOAD_URL", cls.upload_url),
            generate_url=_env("WHISK_GENERATE_URL", cls.generate_url),
            project_url=_strip_trailing_slash(_env("WHISK_PROJECT_URL", cls.project_url)),
            request_timeout=_env_float("WHISK_REQUEST_TIMEOUT", cls.request_timeout),
            file_prefix=_env("WHISK_FILE_PREFIX", cls.file_prefix).strip() or cls.file_prefix,
            default_save_folder=_env("WHISK_SAVE_FOLDER", "").strip(),
            accounts_path=_env("WHISK_ACCOUNTS_PATH", cls.accounts_path),
            log_level=_env("LOG_LEVEL", cls.log_level).strip().upper() or cls.log_level,
        )

    def project_link(self, workflow_id: str) -> str:
        return f"{self.project_url}/{workflow_id}"

