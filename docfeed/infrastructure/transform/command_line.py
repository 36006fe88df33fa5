"""Transform stage that pipes document content through an external command."""

import asyncio
import shlex
import tempfile
from collections.abc import Sequence
from pathlib import Path
from typing import BinaryIO

import logfire

from docfeed.config import TransformConfig
from docfeed.domain.shared.error import TransformError
from docfeed.domain.transform.pipeline import DocumentTransform, TransformPipeline


def encode_params(params: dict[str, str]) -> bytes:
    """Serialize params as NUL-separated ``key\\0value\\0`` pairs."""
    out = bytearray()
    for key, value in params.items():
        if "\0" in key or "\0" in value:
            raise ValueError(f"parameter {key!r} contains a NUL character")
        out += key.encode("utf-8") + b"\0" + value.encode("utf-8") + b"\0"
    return bytes(out)


def decode_params(data: bytes) -> dict[str, str]:
    """Parse the format written by encode_params()."""
    if not data:
        return {}
    if not data.endswith(b"\0"):
        raise ValueError("parameter data is not NUL-terminated")
    fields = data[:-1].split(b"\0")
    if len(fields) % 2:
        raise ValueError("parameter data has a key without a value")
    try:
        decoded = [field.decode("utf-8") for field in fields]
    except UnicodeDecodeError as e:
        raise ValueError(f"parameter data is not valid UTF-8: {e}") from e
    return dict(zip(decoded[::2], decoded[1::2]))


class CommandLineTransform(DocumentTransform):
    """Runs a command with the content on stdin and takes stdout as new content.

    When the command accepts parameters, the metadata content and the
    parameters are written to two temporary files whose paths are appended to
    the command line, metadata first. The command may rewrite both files;
    they are read back after it exits. Otherwise metadata and parameters pass
    through unchanged.

    Example:
        CommandLineTransform("regex replace", "sed s/i/1/", accepts_parameters=False)
    """

    def __init__(
        self,
        name: str,
        command: str | Sequence[str],
        accepts_parameters: bool = True,
        working_directory: Path | None = None,
    ) -> None:
        super().__init__(name)
        self._command = shlex.split(command) if isinstance(command, str) else list(command)
        if not self._command:
            raise ValueError("command must not be empty")
        self._accepts_parameters = accepts_parameters
        self._working_directory = working_directory

    @property
    def command(self) -> list[str]:
        return list(self._command)

    @property
    def accepts_parameters(self) -> bool:
        return self._accepts_parameters

    async def transform(
        self,
        content_in: bytes,
        metadata_in: bytes,
        content_out: BinaryIO,
        metadata_out: BinaryIO,
        params: dict[str, str],
    ) -> None:
        if not self._accepts_parameters:
            content_out.write(await self._run(self._command, content_in))
            metadata_out.write(metadata_in)
            return

        with tempfile.TemporaryDirectory(prefix="docfeed-transform-") as tmp:
            metadata_file = Path(tmp) / "metadata"
            params_file = Path(tmp) / "params"
            try:
                params_data = encode_params(params)
            except ValueError as e:
                raise TransformError(self.name, str(e)) from e
            metadata_file.write_bytes(metadata_in)
            params_file.write_bytes(params_data)

            args = [*self._command, str(metadata_file), str(params_file)]
            content = await self._run(args, content_in)

            try:
                new_params = decode_params(params_file.read_bytes())
                new_metadata = metadata_file.read_bytes()
            except (OSError, ValueError) as e:
                logfire.error("Malformed transform output", stage=self.name, error=str(e))
                raise TransformError(self.name, str(e)) from e

        content_out.write(content)
        metadata_out.write(new_metadata)
        params.clear()
        params.update(new_params)

    async def _run(self, args: list[str], stdin: bytes) -> bytes:
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self._working_directory,
            )
        except OSError as e:
            logfire.error("Could not start transform command", stage=self.name, error=str(e))
            raise TransformError(self.name, f"could not start {args[0]!r}: {e}") from e

        try:
            stdout, stderr = await process.communicate(stdin)
        except asyncio.CancelledError:
            process.kill()
            await process.wait()
            raise
        except OSError as e:
            logfire.error("Transform command I/O failed", stage=self.name, error=str(e))
            raise TransformError(self.name, f"I/O error talking to {args[0]!r}: {e}") from e

        if process.returncode != 0:
            stderr_text = stderr.decode("utf-8", errors="replace")
            logfire.error(
                "Transform command failed",
                stage=self.name,
                exit_code=process.returncode,
            )
            raise TransformError(
                self.name,
                f"command exited with code {process.returncode}: {stderr_text[:2000]}",
            )
        return stdout


def pipeline_from_config(config: TransformConfig) -> TransformPipeline:
    """Build a pipeline of command-line stages from settings."""
    return TransformPipeline(
        CommandLineTransform(
            name=stage.name,
            command=stage.command,
            accepts_parameters=stage.accepts_parameters,
            working_directory=stage.working_directory,
        )
        for stage in config.stages
    )
