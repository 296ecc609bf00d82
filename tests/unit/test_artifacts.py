"""Unit tests for artifact resolution and compilation."""

import asyncio

import pytest
from solcx.exceptions import SolcError

from contract_deployer import artifacts
from contract_deployer.artifacts import ArtifactResolver, CompilerOutput, SolcCompiler
from contract_deployer.exceptions import CompileFailure, ValidationError
from contract_deployer.types import Artifact, InputKind, MultiContractPolicy, SourceArtifact

ABI = [{"type": "constructor", "inputs": [], "stateMutability": "nonpayable"}]


def _output(**units):
    return CompilerOutput(units={name: {"abi": ABI, "bytecode": code} for name, code in units.items()})


class TestResolve:
    """Test ArtifactResolver.resolve for both input kinds."""

    def test_bytecode_passes_through(self, compiler):
        """Test that supplied bytecode is used unchanged, without compiling."""
        artifact = Artifact(bytecode="0x6080", abi=ABI)

        resolved = asyncio.run(
            ArtifactResolver(compiler).resolve(InputKind.BYTECODE_AND_INTERFACE, artifact)
        )

        assert resolved is artifact
        assert compiler.sources == []

    def test_source_is_compiled(self, compiler):
        """Test that source text is compiled and the unit's bytecode prefixed."""
        compiler.output = _output(Counter="6080604052")

        resolved = asyncio.run(
            ArtifactResolver(compiler).resolve(
                InputKind.SOURCE_TEXT, SourceArtifact("contract Counter {}")
            )
        )

        assert compiler.sources == ["contract Counter {}"]
        assert resolved == Artifact(bytecode="0x6080604052", abi=ABI)

    def test_mismatched_raw_artifact(self, compiler):
        with pytest.raises(ValidationError):
            asyncio.run(
                ArtifactResolver(compiler).resolve(
                    InputKind.SOURCE_TEXT, Artifact(bytecode="0x00", abi=[])
                )
            )


class TestSelectUnit:
    """Test the post-compilation checks."""

    def test_error_diagnostics_fail(self, compiler):
        """Test that error diagnostics are surfaced verbatim."""
        output = CompilerOutput(
            units={"Counter": {"abi": [], "bytecode": "6080"}},
            diagnostics=[
                {"severity": "warning", "message": "Unused variable"},
                {"severity": "error", "message": "ParserError: Expected ';' but got '}'"},
            ],
        )

        with pytest.raises(CompileFailure) as exc_info:
            ArtifactResolver(compiler).select_unit(output)

        assert exc_info.value.messages == ["ParserError: Expected ';' but got '}'"]

    def test_warnings_alone_do_not_fail(self, compiler):
        output = _output(Counter="6080")
        output.diagnostics.append({"severity": "warning", "message": "SPDX license missing"})

        artifact = ArtifactResolver(compiler).select_unit(output)
        assert artifact.bytecode == "0x6080"

    def test_no_units(self, compiler):
        with pytest.raises(CompileFailure, match="no contract found"):
            ArtifactResolver(compiler).select_unit(CompilerOutput())

    def test_empty_bytecode(self, compiler):
        """Test that interfaces and abstract contracts are not deployable."""
        with pytest.raises(CompileFailure, match="no bytecode generated"):
            ArtifactResolver(compiler).select_unit(_output(IToken=""))

    def test_first_policy_picks_first_unit(self, compiler, caplog):
        """Test that the first unit wins and the others are logged."""
        resolver = ArtifactResolver(compiler, policy=MultiContractPolicy.FIRST)

        artifact = resolver.select_unit(_output(Library="0xaa", Token="0xbb"))

        assert artifact.bytecode == "0xaa"
        assert "ignoring Token" in caplog.text

    def test_reject_policy(self, compiler):
        resolver = ArtifactResolver(compiler, policy=MultiContractPolicy.REJECT)

        with pytest.raises(CompileFailure, match="multiple contracts found: Library, Token"):
            resolver.select_unit(_output(Library="0xaa", Token="0xbb"))


class TestSolcCompiler:
    """Test the py-solc-x backed compiler with solcx patched out."""

    @pytest.fixture
    def fake_solcx(self, monkeypatch):
        calls = {"install": [], "compile": []}

        monkeypatch.setattr(artifacts.solcx, "get_installed_solc_versions", lambda: [])
        monkeypatch.setattr(
            artifacts.solcx, "install_solc", lambda version: calls["install"].append(version)
        )
        return calls

    def test_normalizes_standard_json_output(self, fake_solcx, monkeypatch):
        """Test that contracts and diagnostics are read from standard JSON output."""

        def compile_standard(standard_input, solc_version):
            fake_solcx["compile"].append((standard_input, solc_version))
            return {
                "contracts": {
                    "contract.sol": {
                        "Counter": {"abi": ABI, "evm": {"bytecode": {"object": "6080"}}}
                    }
                },
                "errors": [{"severity": "warning", "formattedMessage": "Warning: unused"}],
            }

        monkeypatch.setattr(artifacts.solcx, "compile_standard", compile_standard)

        output = SolcCompiler("0.8.20").compile("contract Counter {}")

        assert fake_solcx["install"] == ["0.8.20"]
        standard_input, version = fake_solcx["compile"][0]
        assert version == "0.8.20"
        assert standard_input["sources"]["contract.sol"]["content"] == "contract Counter {}"
        assert output.units == {"Counter": {"abi": ABI, "bytecode": "6080"}}
        assert output.diagnostics == [{"severity": "warning", "message": "Warning: unused"}]

    def test_solc_error_becomes_diagnostics(self, fake_solcx, monkeypatch):
        """Test that a failing solc run is reported as error diagnostics."""

        def compile_standard(standard_input, solc_version):
            error = SolcError(
                "compilation failed",
                command=["solc"],
                return_code=1,
                stdin_data=None,
                stdout_data="",
                stderr_data="",
                error_dict=[{"severity": "error", "message": "Expected ';' but got '}'"}],
            )
            raise error

        monkeypatch.setattr(artifacts.solcx, "compile_standard", compile_standard)

        output = SolcCompiler("0.8.20").compile("contract Broken {")

        assert output.units == {}
        assert output.diagnostics == [{"severity": "error", "message": "Expected ';' but got '}'"}]
