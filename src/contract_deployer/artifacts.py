"""Artifact resolution and Solidity compilation for contract-deployer."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

import solcx
from solcx.exceptions import SolcError

from .constants import DEFAULT_SOLC_VERSION
from .exceptions import CompileFailure, ValidationError
from .types import Artifact, InputKind, MultiContractPolicy, RawArtifact, SourceArtifact

logger = logging.getLogger(__name__)

SOURCE_FILE_NAME = "contract.sol"


@dataclass
class CompilerOutput:
    """
    Normalized compiler result.

    units maps contract name -> {"abi": [...], "bytecode": "<hex or empty>"},
    in the order the compiler returned them.
    """

    units: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    diagnostics: List[Dict[str, str]] = field(default_factory=list)


class Compiler(Protocol):
    def compile(self, source_text: str) -> CompilerOutput: ...


class SolcCompiler:
    """Solidity compiler backed by py-solc-x standard JSON."""

    def __init__(self, version: str = DEFAULT_SOLC_VERSION):
        self.version = version
        self._installed = False

    def _ensure_installed(self) -> None:
        if self._installed:
            return
        installed = {str(v) for v in solcx.get_installed_solc_versions()}
        if self.version not in installed:
            logger.info("Installing solc %s", self.version)
            solcx.install_solc(self.version)
        self._installed = True

    def compile(self, source_text: str) -> CompilerOutput:
        """
        Compile a single Solidity source file.

        Compiler errors are returned as diagnostics rather than raised.
        """
        self._ensure_installed()
        standard_input = {
            "language": "Solidity",
            "sources": {SOURCE_FILE_NAME: {"content": source_text}},
            "settings": {
                "outputSelection": {"*": {"*": ["abi", "evm.bytecode.object"]}}
            },
        }

        try:
            output = solcx.compile_standard(standard_input, solc_version=self.version)
        except SolcError as e:
            errors = getattr(e, "error_dict", None) or [
                {"severity": "error", "message": getattr(e, "message", str(e))}
            ]
            return CompilerOutput(diagnostics=[_diagnostic(err) for err in errors])

        units: Dict[str, Dict[str, Any]] = {}
        for name, contract in output.get("contracts", {}).get(SOURCE_FILE_NAME, {}).items():
            units[name] = {
                "abi": contract.get("abi", []),
                "bytecode": contract.get("evm", {}).get("bytecode", {}).get("object", ""),
            }

        return CompilerOutput(
            units=units,
            diagnostics=[_diagnostic(err) for err in output.get("errors", [])],
        )


def _diagnostic(error: Dict[str, Any]) -> Dict[str, str]:
    return {
        "severity": error.get("severity", "error"),
        "message": error.get("message") or error.get("formattedMessage", ""),
    }


class ArtifactResolver:
    """Turns stored user input into a deployable Artifact."""

    def __init__(
        self,
        compiler: Optional[Compiler] = None,
        policy: MultiContractPolicy = MultiContractPolicy.FIRST,
    ):
        self._compiler = compiler if compiler is not None else SolcCompiler()
        self.policy = policy

    async def resolve(self, input_kind: InputKind, raw_artifact: RawArtifact) -> Artifact:
        """
        Resolve the artifact for a deployment attempt.

        Source text is compiled here, off the event loop.

        Raises:
            CompileFailure: If compilation fails or yields nothing deployable
            ValidationError: If raw_artifact does not match input_kind
        """
        if input_kind is InputKind.BYTECODE_AND_INTERFACE:
            if not isinstance(raw_artifact, Artifact):
                raise ValidationError("Expected bytecode and interface")
            return raw_artifact

        if not isinstance(raw_artifact, SourceArtifact):
            raise ValidationError("Expected source text")

        output = await asyncio.to_thread(self._compiler.compile, raw_artifact.source_text)
        return self.select_unit(output)

    def select_unit(self, output: CompilerOutput) -> Artifact:
        """
        Apply the post-compilation checks and pick the contract to deploy.

        Checks, in order: error diagnostics, no units, multiple units
        (policy), missing bytecode.
        """
        errors = [d["message"] for d in output.diagnostics if d.get("severity") == "error"]
        if errors:
            raise CompileFailure(errors)

        if not output.units:
            raise CompileFailure(["no contract found"])

        names = list(output.units)
        if len(names) > 1:
            if self.policy is MultiContractPolicy.REJECT:
                raise CompileFailure([f"multiple contracts found: {', '.join(names)}"])
            logger.warning("Deploying %s, ignoring %s", names[0], ", ".join(names[1:]))

        unit = output.units[names[0]]
        bytecode = unit.get("bytecode") or ""
        if not bytecode or bytecode == "0x":
            raise CompileFailure(["no bytecode generated"])

        if not bytecode.startswith("0x"):
            bytecode = "0x" + bytecode
        return Artifact(bytecode=bytecode, abi=unit.get("abi", []))
