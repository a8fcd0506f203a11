"""Tests for the Gopkg.toml / Gopkg.lock parser."""

from unittest.mock import patch

import pytest

from dep_parse.core.parsers import go_dep
from dep_parse.core.parsers.base import DefaultSource, DependencyFile, GitSource, Requirement
from dep_parse.core.parsers.go_dep import GoDepParser
from dep_parse.errors import (
    DependencyFileNotParseable,
    MissingRequiredFile,
    UnexpectedDeclarationError,
    UnresolvableGitSourceError,
)

MANIFEST = '''
[[constraint]]
  name = "github.com/pkg/errors"
  version = "0.8.0"

[[constraint]]
  name = "github.com/satori/go.uuid"
  branch = "master"

[[constraint]]
  name = "golang.org/x/text"
  revision = "470f45bf29f4147d6fbd7dfd0a02a848e49f5bf4"

[[constraint]]
  name = "github.com/dgrijalva/jwt-go"
  version = "release-1.0"

[[constraint]]
  name = "github.com/kr/pretty"
  version = "master"

[[override]]
  name = "github.com/sirupsen/logrus"
  version = "^1.0.0"
'''

LOCKFILE = '''
[[projects]]
  name = "github.com/pkg/errors"
  packages = ["."]
  revision = "645ef00459ed84a119197bfb8d8205042c6df63d"
  version = "v0.8.0"

[[projects]]
  branch = "master"
  name = "github.com/satori/go.uuid"
  packages = ["."]
  revision = "36e9d2ebbde5e3f13ab2e25625fd453271d6522e"

[[projects]]
  name = "golang.org/x/text"
  packages = ["."]
  revision = "470f45bf29f4147d6fbd7dfd0a02a848e49f5bf4"

[[projects]]
  name = "github.com/dgrijalva/jwt-go"
  packages = ["."]
  revision = "06ea1031745cb8b3dab3f6a236daf2b0aa468b7e"
  version = "release-1.0"

[[projects]]
  name = "github.com/sirupsen/logrus"
  packages = ["."]
  revision = "c155da19408a8799da419ed3eeb0cb5db0ad5dbc"
  version = "v1.0.5"

[[projects]]
  name = "golang.org/x/sys"
  packages = ["unix"]
  revision = "1d2aa6dbdea45adaaebb9905d0666e4537563829"

[solve-meta]
  analyzer-name = "dep"
  solver-name = "gps-cdcl"
'''


def _files(manifest=MANIFEST, lockfile=LOCKFILE):
    files = []
    if manifest is not None:
        files.append(DependencyFile(name="Gopkg.toml", content=manifest))
    if lockfile is not None:
        files.append(DependencyFile(name="Gopkg.lock", content=lockfile))
    return files


@pytest.fixture
def dependencies():
    """Parse the sample manifest and lockfile."""
    return {dep.name: dep for dep in GoDepParser(_files()).parse()}


class TestRequiredFiles:
    """Test required-file checks."""

    @pytest.mark.parametrize("manifest,lockfile,missing", [
        (None, LOCKFILE, "Gopkg.toml"),
        (MANIFEST, None, "Gopkg.lock"),
    ])
    def test_missing_file(self, manifest, lockfile, missing):
        """Test that both files are required."""
        with pytest.raises(MissingRequiredFile) as exc_info:
            GoDepParser(_files(manifest, lockfile))

        assert exc_info.value.file_name == missing


class TestGoDepParser:
    """Test Gopkg.toml / Gopkg.lock parsing."""

    def test_every_locked_project_is_returned(self, dependencies):
        """Test that lockfile projects appear with or without a declaration."""
        assert set(dependencies) == {
            "github.com/pkg/errors",
            "github.com/satori/go.uuid",
            "golang.org/x/text",
            "github.com/dgrijalva/jwt-go",
            "github.com/sirupsen/logrus",
            "golang.org/x/sys",
        }

    def test_declaration_absent_from_lockfile_is_dropped(self, dependencies):
        """Test that a branch-like declaration with no locked project is skipped."""
        assert "github.com/kr/pretty" not in dependencies

    def test_registry_constraint(self, dependencies):
        """Test a declaration with a version constraint."""
        dependency = dependencies["github.com/pkg/errors"]

        assert dependency.version == "0.8.0"
        assert dependency.package_manager == "dep"
        assert dependency.requirements == [Requirement(
            requirement="0.8.0",
            file="Gopkg.toml",
            groups=(),
            source=DefaultSource("github.com/pkg/errors"),
        )]

    def test_override_declaration(self, dependencies):
        """Test that overrides are read like constraints."""
        dependency = dependencies["github.com/sirupsen/logrus"]

        assert dependency.version == "1.0.5"
        assert dependency.requirements[0].requirement == "^1.0.0"

    def test_branch_declaration(self, dependencies):
        """Test a declaration that follows a branch."""
        dependency = dependencies["github.com/satori/go.uuid"]

        assert dependency.version == "36e9d2ebbde5e3f13ab2e25625fd453271d6522e"
        assert dependency.requirements == [Requirement(
            requirement=None,
            file="Gopkg.toml",
            groups=(),
            source=GitSource(url="https://github.com/satori/go.uuid", branch="master", ref=None),
        )]

    def test_revision_declaration_keeps_exact_ref(self, dependencies):
        """Test that a declared revision is reproduced in the git ref."""
        source = dependencies["golang.org/x/text"].requirements[0].source

        assert source == GitSource(
            url="https://github.com/golang/text",
            branch=None,
            ref="470f45bf29f4147d6fbd7dfd0a02a848e49f5bf4",
        )

    def test_tag_name_in_version_is_a_git_ref(self, dependencies):
        """Test that a version which is not a constraint is treated as a tag."""
        dependency = dependencies["github.com/dgrijalva/jwt-go"]

        assert dependency.version == "release-1.0"
        assert dependency.requirements[0].requirement is None
        assert dependency.requirements[0].source == GitSource(
            url="https://github.com/dgrijalva/jwt-go", branch=None, ref="release-1.0"
        )

    def test_transitive_project_has_no_requirements(self, dependencies):
        """Test that an undeclared locked project uses its revision as version."""
        dependency = dependencies["golang.org/x/sys"]

        assert dependency.version == "1d2aa6dbdea45adaaebb9905d0666e4537563829"
        assert dependency.requirements == []

    def test_explicit_source_is_used(self):
        """Test that a source override is used for lookup and URL conversion."""
        manifest = '''
[[constraint]]
  name = "github.com/old/errors"
  source = "github.com/fork/errors"
  branch = "fix"

[[constraint]]
  name = "github.com/old/other"
  source = "github.com/fork/other"
  version = "~1.2"
'''
        lockfile = '''
[[projects]]
  name = "github.com/old/errors"
  revision = "aaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa"

[[projects]]
  name = "github.com/old/other"
  revision = "bbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbb"
  version = "v1.2.4"
'''
        result = {dep.name: dep for dep in GoDepParser(_files(manifest, lockfile)).parse()}

        assert result["github.com/old/errors"].requirements[0].source == GitSource(
            url="https://github.com/fork/errors", branch="fix", ref=None
        )
        assert result["github.com/old/other"].requirements[0].source == DefaultSource("github.com/fork/other")

    def test_git_declaration_without_resolvable_url_is_fatal(self):
        """Test that a git pin with no known host is a configuration defect."""
        manifest = '''
[[constraint]]
  name = "example.com/internal/lib"
  branch = "main"
'''
        lockfile = '''
[[projects]]
  name = "example.com/internal/lib"
  revision = "cccccccccccccccccccccccccccccccccccccccc"
'''
        with pytest.raises(UnresolvableGitSourceError):
            GoDepParser(_files(manifest, lockfile)).parse()

    def test_registry_constraint_without_url_is_fine(self):
        """Test that URL conversion is only needed for git pins."""
        manifest = '''
[[constraint]]
  name = "example.com/internal/lib"
  version = "1.0.0"
'''
        lockfile = '''
[[projects]]
  name = "example.com/internal/lib"
  revision = "cccccccccccccccccccccccccccccccccccccccc"
  version = "v1.0.0"
'''
        dependency = GoDepParser(_files(manifest, lockfile)).parse()[0]

        assert dependency.requirements[0].source == DefaultSource("example.com/internal/lib")

    def test_malformed_manifest(self):
        """Test that invalid TOML names the offending file."""
        with pytest.raises(DependencyFileNotParseable) as exc_info:
            GoDepParser(_files(manifest="[[constraint]\n name = ")).parse()

        assert exc_info.value.file_path == "/Gopkg.toml"

    def test_malformed_lockfile(self):
        """Test that invalid lockfile TOML names the lockfile."""
        with pytest.raises(DependencyFileNotParseable) as exc_info:
            GoDepParser(_files(lockfile="projects = [")).parse()

        assert exc_info.value.file_path == "/Gopkg.lock"

    def test_unexpected_declaration_shape(self):
        """Test that a non-table declaration is a defect."""
        with pytest.raises(UnexpectedDeclarationError):
            GoDepParser(_files(manifest='constraint = ["github.com/pkg/errors"]\n')).parse()

    def test_documents_parsed_once_per_parser(self):
        """Test that each file is decoded once even across parse calls."""
        parser = GoDepParser(_files())

        with patch.object(go_dep.tomllib, "loads", wraps=go_dep.tomllib.loads) as loads:
            first = parser.parse()
            second = parser.parse()

        assert loads.call_count == 2
        assert [dep.to_dict() for dep in first] == [dep.to_dict() for dep in second]

    def test_separate_parsers_do_not_share_cache(self):
        """Test that caches are scoped to the parser instance."""
        GoDepParser(_files()).parse()
        other = GoDepParser(_files(lockfile=LOCKFILE.replace("v1.0.5", "v1.0.6")))

        result = {dep.name: dep for dep in other.parse()}
        assert result["github.com/sirupsen/logrus"].version == "1.0.6"

    @pytest.mark.parametrize("constraint", ["0.8.0 <0.9.0", ">=0.8 <1.0"])
    def test_space_separated_constraint_is_not_a_git_ref(self, constraint):
        """Test that a multi-clause constraint stays a registry requirement."""
        manifest = f'''
[[constraint]]
  name = "github.com/pkg/errors"
  version = "{constraint}"
'''
        lockfile = '''
[[projects]]
  name = "github.com/pkg/errors"
  revision = "645ef00459ed84a119197bfb8d8205042c6df63d"
  version = "v0.8.1"
'''
        dependency = GoDepParser(_files(manifest, lockfile)).parse()[0]

        assert dependency.version == "0.8.1"
        assert dependency.requirements == [Requirement(
            requirement=constraint,
            file="Gopkg.toml",
            groups=(),
            source=DefaultSource("github.com/pkg/errors"),
        )]
