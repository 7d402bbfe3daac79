"""
Configuration Management

Handles loading planner settings from environment variables and the .env file.
"""

import os
from pathlib import Path


class Config:
    """Configuration manager for the GraphPlan planner"""

    def __init__(self):
        self._load_env()

    def _load_env(self):
        """Load environment variables from .env file"""
        env_path = Path(__file__).parent.parent / ".env"

        if env_path.exists():
            with open(env_path, 'r') as f:
                for line in f:
                    line = line.strip()
                    if line and not line.startswith('#'):
                        key, value = line.split('=', 1)
                        os.environ[key.strip()] = value.strip()

    @property
    def verbose(self) -> bool:
        """Print planning graph progress (default: False)"""
        return os.getenv('GRAPHPLAN_VERBOSE', 'false').lower() == 'true'

    @property
    def max_layers(self) -> int:
        """Maximum number of graph expansions per solve (default: 0 = unlimited)"""
        return int(os.getenv('GRAPHPLAN_MAX_LAYERS', '0'))

    @property
    def log_dir(self) -> str:
        """Directory for run logs (default: logs)"""
        return os.getenv('GRAPHPLAN_LOG_DIR', 'logs')

    @property
    def strict_mutexes(self) -> bool:
        """Also derive action mutexes from mutex preconditions (default: False)"""
        return os.getenv('GRAPHPLAN_STRICT_MUTEXES', 'false').lower() == 'true'

    def validate(self) -> bool:
        """Validate configuration"""
        try:
            if self.max_layers < 0:
                return False
        except ValueError:
            return False
        return True


# Global config instance
config = Config()


def get_config() -> Config:
    """Get global configuration instance"""
    return config
