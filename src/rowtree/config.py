import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Load the appropriate .env file on module import
env = os.environ.get("ROWTREE_ENV", "development").lower()
env_file = f".env.{env}"
if os.path.exists(env_file):
    load_dotenv(env_file)
else:
    # Fall back to the default .env file
    load_dotenv()


@dataclass
class Config:
    environment: str
    database_url: Optional[str]
    paramstyle: str
    log_level: str

    @classmethod
    def from_env(cls) -> "Config":
        return cls(
            environment=env,
            database_url=os.environ.get("DATABASE_URL"),
            paramstyle=os.environ.get("ROWTREE_PARAMSTYLE", "format"),
            log_level=os.environ.get("ROWTREE_LOG_LEVEL", "WARNING").upper(),
        )


config = Config.from_env()
