"""
Registry generation through nix-env.

This module runs the external registry generator and hands its standard
output to the loader. nixfind never evaluates nixpkgs itself.
"""

import logging
import shutil
import subprocess
import time
from pathlib import Path
from typing import List, Optional, Union

from nixfind.core.exceptions import SubprocessFailure


logger = logging.getLogger(__name__)


class RegistryGenerator:
    """
    Produces a registry document by evaluating nixpkgs with nix-env.

    The command run is equivalent to::

        nix-env --json -f <nixpkgs> [-I nixpkgs=LOCATION] -qa --meta --out-path [--arg config EXPR]
    """

    def __init__(
        self,
        nixpkgs: Optional[str] = None,
        nixpkgs_config: Optional[str] = None,
        command: str = "nix-env",
    ):
        """
        Initialize the generator.

        Args:
            nixpkgs: Location or flake URI of nixpkgs. If None, the <nixpkgs>
                entry of the caller's NIX_PATH is used.
            nixpkgs_config: Nix expression passed as the ``config`` argument.
            command: The nix-env executable.
        """
        self.nixpkgs = nixpkgs
        self.nixpkgs_config = nixpkgs_config
        self.command = command

    def build_command(self) -> List[str]:
        """Return the argument vector for the generator."""
        args = [self.command, "--json", "-f", "<nixpkgs>"]

        if self.nixpkgs:
            args.extend(["-I", f"nixpkgs={self.nixpkgs}"])

        args.extend(["-qa", "--meta", "--out-path"])

        if self.nixpkgs_config:
            args.extend(["--arg", "config", self.nixpkgs_config])

        return args

    def is_available(self) -> bool:
        """Check whether the generator command can be found."""
        return shutil.which(self.command) is not None

    def generate(self, save_registry: Optional[Union[str, Path]] = None) -> bytes:
        """
        Run the generator and return the registry document.

        Args:
            save_registry: Optional path to save the raw registry to.

        Returns:
            The JSON document printed by the generator.

        Raises:
            SubprocessFailure: If the generator cannot be launched or exits
                with a non-zero status.
            OSError: If the registry cannot be saved.
        """
        args = self.build_command()
        logger.debug(f"Running {' '.join(args)}")

        start = time.perf_counter()
        try:
            result = subprocess.run(args, capture_output=True, check=False)
        except (OSError, subprocess.SubprocessError) as e:
            raise SubprocessFailure(f"could not run {self.command}: {e}") from e

        if result.returncode != 0:
            raise SubprocessFailure(
                f"{self.command} exited with status {result.returncode}",
                returncode=result.returncode,
                stderr=result.stderr.decode("utf-8", errors="replace"),
            )

        logger.info(f"evaluated registry in {time.perf_counter() - start:.4f} seconds")

        if save_registry is not None:
            Path(save_registry).write_bytes(result.stdout)
            logger.info(f"saved registry to {save_registry}")

        return result.stdout
