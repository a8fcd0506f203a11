"""Tests for the go.mod parser and its go list output handling."""

import json

import pytest

from dep_parse.config import ParserSettings
from dep_parse.core.parsers.base import Credential, DefaultSource, DependencyFile, GitSource, Requirement
from dep_parse.core.parsers.go_modules import GoModulesParser, iter_json_chunks
from dep_parse.errors import DependencyFileNotParseable, MissingRequiredFile
from dep_parse.utils.shared_helpers import CommandResult

GO_MOD = """module github.com/example/project

require (
\tgithub.com/pkg/errors v0.8.1
\tgolang.org/x/net v0.0.0-20200101000000-abcdef012345
\trsc.io/quote v1.5.2 // indirect
)
"""

GO_LIST_OUTPUT = """{
\t"Path": "github.com/example/project",
\t"Main": true,
\t"Dir": "/tmp/project",
\t"GoMod": "/tmp/project/go.mod"
}
{
\t"Path": "github.com/pkg/errors",
\t"Version": "v0.8.1",
\t"Time": "2019-01-03T19:31:39Z",
\t"Replace": {
\t\t"Path": "github.com/pkg/errors",
\t\t"Version": "v0.8.1"
\t}
}
{
\t"Path": "golang.org/x/net",
\t"Version": "v1.2.3-0.20200101000000-abcdef012345",
\t"Time": "2020-01-01T00:00:00Z"
}
{
\t"Path": "rsc.io/quote",
\t"Version": "v1.5.2",
\t"Indirect": true
}
{
\t"Path": "example.com/internal/lib",
\t"Version": "v0.0.0-20190101000000-0123456789ab",
\t"Indirect": true
}
"""


class FakeRunner:
    """Records go invocations and returns canned output."""

    def __init__(self, stdout=GO_LIST_OUTPUT, returncode=0, stderr=""):
        self.result = CommandResult(stdout=stdout, stderr=stderr, returncode=returncode)
        self.calls = []
        self.go_mod_contents = []
        self.gitconfigs = []

    def __call__(self, args, cwd, env):
        self.calls.append((args, cwd, dict(env)))
        self.go_mod_contents.append((cwd / "go.mod").read_text())
        with open(env["GIT_CONFIG_GLOBAL"]) as f:
            self.gitconfigs.append(f.read())
        return self.result


def _parser(runner, files=None, credentials=None, settings=None):
    files = files if files is not None else [DependencyFile(name="go.mod", content=GO_MOD)]
    return GoModulesParser(files, credentials=credentials, settings=settings, command_runner=runner)


class TestJsonChunks:
    """Test re-framing of concatenated go list output."""

    def test_splits_on_opening_brace_lines(self):
        """Test that each top-level object becomes one chunk."""
        chunks = list(iter_json_chunks(GO_LIST_OUTPUT))

        assert len(chunks) == 5
        assert all(chunk.startswith("{\n") for chunk in chunks)
        assert [json.loads(chunk)["Path"] for chunk in chunks][:2] == [
            "github.com/example/project",
            "github.com/pkg/errors",
        ]

    def test_nested_braces_do_not_split(self):
        """Test that indented opening braces stay inside their record."""
        chunk = list(iter_json_chunks(GO_LIST_OUTPUT))[1]

        assert json.loads(chunk)["Replace"]["Version"] == "v0.8.1"

    def test_empty_output(self):
        """Test that no output gives no chunks."""
        assert list(iter_json_chunks("")) == []

    def test_chunks_are_lazy(self):
        """Test that the segmenter yields records one at a time."""
        chunks = iter_json_chunks('{\n"Path": "a"\n}\n{\n"Path": "b"\n}\n')

        assert json.loads(next(chunks)) == {"Path": "a"}
        assert json.loads(next(chunks)) == {"Path": "b"}
        with pytest.raises(StopIteration):
            next(chunks)


class TestGoModulesParser:
    """Test go.mod parsing through go list."""

    def test_requires_go_mod(self):
        """Test that go.mod is required."""
        with pytest.raises(MissingRequiredFile) as exc_info:
            _parser(FakeRunner(), files=[DependencyFile(name="go.sum", content="")])

        assert exc_info.value.file_name == "go.mod"

    def test_main_module_is_dropped(self):
        """Test that the project's own module is not a dependency."""
        output = (
            '{\n"Path": "github.com/example/project",\n"Main": true\n}\n'
            '{\n"Path": "github.com/pkg/errors",\n"Version": "v0.8.1"\n}\n'
        )
        dependencies = _parser(FakeRunner(stdout=output)).parse()

        assert [dep.name for dep in dependencies] == ["github.com/pkg/errors"]

    def test_tagged_module(self):
        """Test a module on a released version."""
        dependencies = {dep.name: dep for dep in _parser(FakeRunner()).parse()}
        dependency = dependencies["github.com/pkg/errors"]

        assert dependency.version == "0.8.1"
        assert dependency.package_manager == "go_modules"
        assert dependency.requirements == [Requirement(
            requirement="v0.8.1",
            file="go.mod",
            groups=(),
            source=DefaultSource("github.com/pkg/errors"),
        )]

    def test_pseudo_version_is_git_pinned(self):
        """Test that a pseudo-version resolves to its commit."""
        dependencies = {dep.name: dep for dep in _parser(FakeRunner()).parse()}
        dependency = dependencies["golang.org/x/net"]

        assert dependency.version == "abcdef012345"
        assert len(dependency.requirements) == 1
        requirement = dependency.requirements[0]
        assert requirement.requirement is None
        assert requirement.source == GitSource(
            url="https://github.com/golang/net", branch=None, ref="abcdef012345"
        )

    def test_indirect_modules_have_no_requirements(self):
        """Test that indirect modules only record a version."""
        dependencies = {dep.name: dep for dep in _parser(FakeRunner()).parse()}

        assert dependencies["rsc.io/quote"].version == "1.5.2"
        assert dependencies["rsc.io/quote"].requirements == []
        assert dependencies["example.com/internal/lib"].version == "0123456789ab"
        assert dependencies["example.com/internal/lib"].requirements == []

    def test_unknown_host_falls_back_to_module_path(self):
        """Test the git URL fallback for a direct pseudo-version."""
        output = '{\n"Path": "example.com/internal/lib",\n"Version": "v0.0.0-20190101000000-0123456789ab"\n}\n'
        dependency = _parser(FakeRunner(stdout=output)).parse()[0]

        assert dependency.requirements[0].source == GitSource(
            url="example.com/internal/lib", branch=None, ref="0123456789ab"
        )

    def test_go_list_invocation(self):
        """Test the command, working directory and environment used."""
        runner = FakeRunner()
        _parser(runner, settings=ParserSettings(go_binary="/usr/local/go/bin/go")).parse()

        args, cwd, env = runner.calls[0]
        assert args == ["/usr/local/go/bin/go", "list", "-m", "-json", "all"]
        assert env["GO111MODULE"] == "on"
        assert env["GIT_TERMINAL_PROMPT"] == "0"
        assert runner.go_mod_contents == [GO_MOD]
        assert not cwd.exists()

    def test_go_sum_is_materialized(self):
        """Test that a supplied go.sum is written next to go.mod."""
        seen = {}

        def runner(args, cwd, env):
            seen["go.sum"] = (cwd / "go.sum").read_text()
            return CommandResult(stdout="", stderr="", returncode=0)

        files = [
            DependencyFile(name="go.mod", content=GO_MOD),
            DependencyFile(name="go.sum", content="github.com/pkg/errors v0.8.1 h1:abc=\n"),
        ]
        assert _parser(runner, files=files).parse() == []
        assert seen["go.sum"] == "github.com/pkg/errors v0.8.1 h1:abc=\n"

    def test_git_credentials_scoped_to_invocation(self):
        """Test that git credentials are configured for the call and then removed."""
        runner = FakeRunner()
        credentials = [Credential(type="git_source", host="github.com", username="x-access-token", password="token")]
        _parser(runner, credentials=credentials).parse()

        _, _, env = runner.calls[0]
        assert "helper = store" in runner.gitconfigs[0]
        assert 'insteadOf = git@github.com:' in runner.gitconfigs[0]
        with pytest.raises(FileNotFoundError):
            open(env["GIT_CONFIG_GLOBAL"])

    def test_tool_failure(self):
        """Test that a failing go list names go.mod."""
        runner = FakeRunner(stdout="", returncode=1, stderr="go: errors parsing go.mod")

        with pytest.raises(DependencyFileNotParseable) as exc_info:
            _parser(runner).parse()

        assert exc_info.value.file_path == "/go.mod"

    def test_tool_failure_cleans_up(self):
        """Test that the working directory is removed when go list fails."""
        runner = FakeRunner(stdout="", returncode=1)

        with pytest.raises(DependencyFileNotParseable):
            _parser(runner).parse()

        _, cwd, _ = runner.calls[0]
        assert not cwd.exists()

    def test_garbled_output(self):
        """Test that undecodable output is reported against go.mod."""
        with pytest.raises(DependencyFileNotParseable):
            _parser(FakeRunner(stdout='{\n"Path": \n')).parse()

    def test_tool_runs_once_per_parser(self):
        """Test that the module listing is cached on the parser."""
        runner = FakeRunner()
        parser = _parser(runner)

        first = parser.parse()
        second = parser.parse()

        assert len(runner.calls) == 1
        assert [dep.to_dict() for dep in first] == [dep.to_dict() for dep in second]
