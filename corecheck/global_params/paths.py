"""Path and configuration management for the external tools.

This module locates the scrambler and the validation solvers and holds the
time budgets used when running them.
"""
from pathlib import Path
import os
import shutil
from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)

DEFAULT_VALIDATION_TIMEOUT = 120.0
DEFAULT_KILL_AFTER = 10.0
DEFAULT_SCRAMBLER_SEED = 0
DEFAULT_SCRAMBLER_TIMEOUT = 300.0


class ToolConfig:
    """Configuration container for an external executable.

    Attributes:
        name: The name of the tool.
        exec_name: The executable name of the tool.
        exec_path: The full path to the executable, if found.
        is_available: Whether the executable is available on the system.
    """
    def __init__(self, name: str, exec_name: str):
        self.name = name
        self.exec_name = exec_name
        self.exec_path: Optional[str] = None
        self.is_available: bool = False

    def __repr__(self) -> str:
        status = "available" if self.is_available else "unavailable"
        return f"ToolConfig(name={self.name}, exec_name={self.exec_name}, status={status})"


class ToolRegistry(type):
    """Metaclass implementing singleton pattern for GlobalConfig."""
    _instance = None

    def __call__(cls, *args, **kwargs):
        if cls._instance is None:
            cls._instance = super().__call__(*args, **kwargs)
        return cls._instance


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r", name, value)
        return default


class GlobalConfig(metaclass=ToolRegistry):
    """Global configuration manager for the external tools.

    Executables are searched in the bin_solvers directory next to the
    project root first, then on the system PATH.
    """
    TOOLS = {
        "z3": ToolConfig("z3", "z3"),
        "cvc5": ToolConfig("cvc5", "cvc5"),
        "mathsat": ToolConfig("mathsat", "mathsat"),
        "scrambler": ToolConfig("scrambler", "scrambler"),
    }

    def __init__(self):
        self._bin_solver_path = Path(__file__).parent.parent.parent / "bin_solvers"
        self.validation_timeout = _env_float(
            "CORECHECK_VALIDATION_TIMEOUT", DEFAULT_VALIDATION_TIMEOUT)
        self.kill_after = _env_float("CORECHECK_KILL_AFTER", DEFAULT_KILL_AFTER)
        self.scrambler_seed = DEFAULT_SCRAMBLER_SEED
        self.scrambler_timeout = _env_float(
            "CORECHECK_SCRAMBLER_TIMEOUT", DEFAULT_SCRAMBLER_TIMEOUT)
        self._locate_all_tools()
        scrambler = os.environ.get("CORECHECK_SCRAMBLER")
        if scrambler:
            self.set_tool_path("scrambler", scrambler)

    def _locate_tool(self, tool_config: ToolConfig) -> None:
        local_path = self._bin_solver_path / tool_config.exec_name
        if shutil.which(str(local_path)):
            tool_config.exec_path = str(local_path)
            tool_config.is_available = True
            return

        system_path = shutil.which(tool_config.exec_name)
        if system_path:
            tool_config.exec_path = system_path
            tool_config.is_available = True
            return

        logger.debug("Could not locate %s executable", tool_config.name)

    def _locate_all_tools(self) -> None:
        for tool_config in self.TOOLS.values():
            self._locate_tool(tool_config)

    def set_tool_path(self, tool_name: str, path: str) -> None:
        """Set a custom path for a tool.

        Raises:
            ValueError: If the tool name is unknown or the path doesn't exist.
        """
        if tool_name not in self.TOOLS:
            raise ValueError(f"Unknown tool: {tool_name}")
        if not Path(path).exists():
            raise ValueError(f"Path does not exist: {path}")
        tool_config = self.TOOLS[tool_name]
        tool_config.exec_path = str(Path(path).resolve())
        tool_config.is_available = True

    def get_tool_path(self, tool_name: str) -> Optional[str]:
        """Get the path to a tool executable, or None if not found."""
        if tool_name not in self.TOOLS:
            raise ValueError(f"Unknown tool: {tool_name}")
        return self.TOOLS[tool_name].exec_path

    def is_tool_available(self, tool_name: str) -> bool:
        if tool_name not in self.TOOLS:
            raise ValueError(f"Unknown tool: {tool_name}")
        return self.TOOLS[tool_name].is_available

    def get_validator_config(self) -> Dict:
        """Get the command line used for each validation solver.

        Every validator takes the formula file as its last argument and prints
        its verdict on the first line of standard output.
        """
        return {
            'z3': {
                'available': self.is_tool_available("z3"),
                'path': self.get_tool_path("z3"),
                'args': [],
            },
            'cvc5': {
                'available': self.is_tool_available("cvc5"),
                'path': self.get_tool_path("cvc5"),
                'args': ["-q", "--lang=smt2"],
            },
            'mathsat': {
                'available': self.is_tool_available("mathsat"),
                'path': self.get_tool_path("mathsat"),
                'args': [],
            },
        }


global_config = GlobalConfig()
