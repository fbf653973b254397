"""
Hierarchical .env file loading for ElProfessor.

The nearest .env file wins: the working directory is searched first, then its
parents up to the git root or the home directory, then the home directory.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import dotenv_values, load_dotenv

logger = logging.getLogger(__name__)

EXAMPLE_ENV_CONTENT = '''# ElProfessor configuration
# Lines starting with # are comments and will be ignored.

# Required: your Gemini API key
GEMINI_API_KEY=your-api-key-here

# Optional: model configuration
GEMINI_MODEL=gemini-2.5-pro
REQUEST_TIMEOUT_MS=120000

# Optional: retry behaviour for Gemini requests and MCP connections
RETRY_MAX_ATTEMPTS=3
RETRY_BASE_DELAY_MS=1000
RETRY_MAX_DELAY_MS=10000

# Optional: force the runtime environment (docker, windows, unix)
# EL_PROFESSOR_RUNTIME=docker

# Optional: logging
LOG_LEVEL=INFO
'''


class EnvFileLoader:
    """
    .env file loader with hierarchical search.

    Search order (stops at first file found):
    1. Current directory: .el-professor/.env → .env
    2. Parent directories (up to git root or home): .el-professor/.env → .env
    3. Home directory: ~/.el-professor/.env → ~/.env
    """

    CONFIG_DIR_NAME = ".el-professor"
    ENV_FILE_NAME = ".env"

    def __init__(self, working_directory: Optional[Path] = None, home_directory: Optional[Path] = None):
        """Initialize env file loader.

        Args:
            working_directory: Starting directory for search
            home_directory: Home directory override
        """
        self.working_directory = Path(working_directory or Path.cwd()).resolve()
        self.home_directory = Path(home_directory or Path.home()).resolve()
        self._loaded_file: Optional[Path] = None
        self._loaded_vars: Dict[str, str] = {}

    def load_env_file(self) -> Optional[Path]:
        """Load environment variables from the nearest .env file.

        Variables already present in the environment are not overridden.

        Returns:
            Path to loaded .env file or None if none found
        """
        env_file_path = self._find_env_file()

        if env_file_path is None:
            logger.debug("No .env file found in search path")
            return None

        load_dotenv(env_file_path, override=False)
        self._loaded_file = env_file_path
        self._loaded_vars = {
            key: value
            for key, value in dotenv_values(env_file_path).items()
            if value is not None
        }

        logger.info(f"Loaded environment variables from: {env_file_path}")
        return env_file_path

    def get_loaded_file(self) -> Optional[Path]:
        return self._loaded_file

    def get_loaded_vars(self) -> Dict[str, str]:
        return self._loaded_vars.copy()

    def get_search_paths(self) -> List[Path]:
        """Get list of all paths that would be searched for .env files, in order."""
        search_paths = []
        current_dir = self.working_directory

        while current_dir != current_dir.parent:
            search_paths.append(current_dir / self.CONFIG_DIR_NAME / self.ENV_FILE_NAME)
            search_paths.append(current_dir / self.ENV_FILE_NAME)

            if self._should_stop_search(current_dir):
                break

            current_dir = current_dir.parent

        search_paths.append(self.home_directory / self.CONFIG_DIR_NAME / self.ENV_FILE_NAME)
        search_paths.append(self.home_directory / self.ENV_FILE_NAME)

        return search_paths

    def create_example_env_file(self, target_dir: Optional[Path] = None) -> Path:
        """Create an example .env file.

        Args:
            target_dir: Directory to create file in (default: .el-professor in the working directory)

        Returns:
            Path to created example file
        """
        if target_dir is None:
            target_dir = self.working_directory / self.CONFIG_DIR_NAME

        target_dir.mkdir(parents=True, exist_ok=True)
        env_file_path = target_dir / self.ENV_FILE_NAME
        env_file_path.write_text(EXAMPLE_ENV_CONTENT, encoding="utf-8")

        logger.info(f"Created example .env file: {env_file_path}")
        return env_file_path

    def _find_env_file(self) -> Optional[Path]:
        for candidate in self.get_search_paths():
            if candidate.is_file():
                return candidate
        return None

    def _should_stop_search(self, directory: Path) -> bool:
        """Stop at a git repository root or the home directory."""
        return (directory / ".git").exists() or directory == self.home_directory


def load_env_with_hierarchy(working_directory: Optional[Path] = None) -> Optional[Path]:
    """Convenience function to load .env file with hierarchical search.

    Args:
        working_directory: Starting directory for search

    Returns:
        Path to loaded .env file or None
    """
    loader = EnvFileLoader(working_directory)
    return loader.load_env_file()
