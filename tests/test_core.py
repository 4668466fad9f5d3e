"""
Core functionality tests for composer-lock-inventory.
Tests lock-file parsing, normalization and the dependency model.
"""

import hashlib
import inspect
import io
import json

import pytest

from composer_lock_inventory.dependency import (
    ComposerPackage,
    Confidence,
    DependencyRecord,
    EvidenceType,
    PlaceholderDependency,
)
from composer_lock_inventory.error_handling import ConfigurationFault, FormatError, IOFault
from composer_lock_inventory.normalizer import (
    DependencyNormalizer,
    compose_file_path,
    resolve_hash_function,
    supersedes_placeholder,
)
from composer_lock_inventory.parsers import (
    open_artifact_stream,
    parse_composer_lock,
    parse_composer_lock_file,
    split_package_name,
)


def _stream(document) -> io.BytesIO:
    if isinstance(document, (bytes, bytearray)):
        return io.BytesIO(document)
    if isinstance(document, str):
        return io.BytesIO(document.encode("utf-8"))
    return io.BytesIO(json.dumps(document).encode("utf-8"))


def _parse(document):
    return list(parse_composer_lock(_stream(document)))


class TestComposerLockParsing:
    """Test decoding composer.lock documents into package entries."""

    def test_parse_both_sections_in_file_order(self, sample_lock_data):
        packages = _parse(sample_lock_data)

        assert [p.name for p in packages] == [
            "symfony/console",
            "monolog/monolog",
            "phpunit/phpunit",
        ]
        assert [p.dev for p in packages] == [False, False, True]

    def test_sections_follow_document_order(self):
        document = (
            '{"packages-dev": [{"name": "a/dev", "version": "1.0.0"}],'
            ' "packages": [{"name": "b/runtime", "version": "2.0.0"}]}'
        )

        packages = _parse(document)

        assert [(p.project, p.dev) for p in packages] == [
            ("dev", True),
            ("runtime", False),
        ]

    def test_name_is_split_into_group_and_project(self):
        packages = _parse({"packages": [{"name": "acme/widget", "version": "1.2.3"}]})

        assert packages == [ComposerPackage("acme", "widget", "1.2.3")]

    def test_name_without_slash_has_empty_group(self):
        packages = _parse({"packages": [{"name": "standalone", "version": "0.1"}]})

        assert packages[0].group == ""
        assert packages[0].project == "standalone"
        assert packages[0].name == "standalone"

    def test_versions_are_kept_verbatim(self):
        packages = _parse(
            {
                "packages": [
                    {"name": "a/one", "version": "v1.0.0"},
                    {"name": "a/two", "version": "^2.0"},
                    {"name": "a/three", "version": "dev-master"},
                ]
            }
        )

        assert [p.version for p in packages] == ["v1.0.0", "^2.0", "dev-master"]

    def test_unknown_keys_are_ignored(self):
        packages = _parse(
            {
                "require": {"php": ">=8.1"},
                "aliases": [{"name": "not/a-package"}],
                "packages": [{"name": "a/b", "version": "1"}],
                "platform-dev": [],
            }
        )

        assert len(packages) == 1

    @pytest.mark.parametrize(
        "document",
        [
            {},
            {"packages": [], "packages-dev": []},
            {"content-hash": "abc", "aliases": []},
        ],
    )
    def test_no_packages_yields_empty_sequence(self, document):
        assert _parse(document) == []

    def test_parser_is_lazy_generator(self, sample_lock_data):
        result = parse_composer_lock(_stream(sample_lock_data))

        assert inspect.isgenerator(result)
        assert next(result).project == "console"

    def test_truncated_document_raises_format_error(self, sample_lock_data):
        text = json.dumps(sample_lock_data)

        with pytest.raises(FormatError) as exc_info:
            _parse(text[: len(text) // 2])

        assert exc_info.value.fragment
        assert exc_info.value.fragment in text

    def test_empty_stream_raises_format_error(self):
        with pytest.raises(FormatError):
            _parse(b"")

    def test_invalid_utf8_raises_format_error(self):
        with pytest.raises(FormatError, match="UTF-8"):
            _parse(b'{"packages": [{"name": "a/\xff\xfe", "version": "1"}]}')

    def test_missing_version_raises_format_error(self):
        with pytest.raises(FormatError, match="'version'") as exc_info:
            _parse({"packages": [{"name": "acme/widget"}]})

        assert "acme/widget" in exc_info.value.fragment

    def test_missing_name_raises_format_error(self):
        with pytest.raises(FormatError, match="'name'"):
            _parse({"packages-dev": [{"version": "1.0.0"}]})

    @pytest.mark.parametrize(
        "package",
        [
            {"name": 42, "version": "1.0.0"},
            {"name": "acme/widget", "version": None},
            {"name": "", "version": "1.0.0"},
            {"name": "acme/widget", "version": ""},
            {"name": "acme/", "version": "1.0.0"},
        ],
    )
    def test_invalid_mandatory_fields_raise_format_error(self, package):
        with pytest.raises(FormatError):
            _parse({"packages": [package]})

    def test_later_malformed_package_fails_whole_file(self):
        document = {
            "packages": [
                {"name": "good/one", "version": "1.0.0"},
                {"name": "bad/two"},
            ]
        }

        with pytest.raises(FormatError):
            _parse(document)

    @pytest.mark.parametrize(
        "document",
        [
            [{"name": "a/b", "version": "1"}],
            {"packages": {"a/b": "1"}},
            {"packages": ["a/b"]},
        ],
    )
    def test_malformed_structure_raises_format_error(self, document):
        with pytest.raises(FormatError):
            _parse(document)

    def test_format_error_message_includes_fragment(self):
        error = FormatError("Bad package", fragment='{"name": "x"}')

        assert str(error) == 'Bad package near: {"name": "x"}'


class TestSplitPackageName:
    """Test splitting Composer package names."""

    def test_splits_on_first_slash_only(self):
        assert split_package_name("acme/widget/extra") == ("acme", "widget/extra")

    def test_no_slash(self):
        assert split_package_name("widget") == ("", "widget")

    def test_leading_slash_gives_empty_group(self):
        assert split_package_name("/widget") == ("", "widget")


class TestLockFileAccess:
    """Test opening lock files from disk."""

    def test_parse_file(self, sample_composer_lock):
        packages = parse_composer_lock_file(str(sample_composer_lock))

        assert len(packages) == 3

    def test_missing_file_raises_io_fault(self, temp_dir):
        with pytest.raises(IOFault, match="does not exist"):
            parse_composer_lock_file(str(temp_dir / "composer.lock"))

    def test_directory_raises_io_fault(self, temp_dir):
        with pytest.raises(IOFault, match="not a file"):
            parse_composer_lock_file(str(temp_dir))

    def test_stream_is_closed_after_parse_failure(self, truncated_composer_lock):
        with pytest.raises(FormatError):
            with open_artifact_stream(str(truncated_composer_lock)) as stream:
                list(parse_composer_lock(stream))

        assert stream.closed


class TestDependencyNormalizer:
    """Test conversion of package entries into dependency records."""

    def setup_method(self):
        self.normalizer = DependencyNormalizer()

    def _normalize(self, packages, placeholder_name="composer.lock", container="C"):
        return self.normalizer.normalize(
            "/srv/app/composer.lock", container, packages, placeholder_name
        )

    def test_logical_path_composition(self):
        result = self._normalize([ComposerPackage("acme", "widget", "1.2.3")])

        assert result.records[0].file_path == "C:acme/widget/1.2.3"

    def test_logical_path_without_group(self):
        package = ComposerPackage("", "widget", "1.2.3")

        assert compose_file_path("C", package) == "C:/widget/1.2.3"

    def test_record_fields(self):
        record = self._normalize([ComposerPackage("acme", "widget", "v1.2.3")]).records[0]

        assert record.actual_file_path == "/srv/app/composer.lock"
        assert record.name == "widget"
        assert record.version == "v1.2.3"
        assert record.ecosystem == "Composer"

    def test_content_hash_is_sha1_of_logical_path(self):
        record = self._normalize([ComposerPackage("acme", "widget", "1.2.3")]).records[0]

        assert record.sha1sum == hashlib.sha1(b"C:acme/widget/1.2.3").hexdigest()

    def test_content_hash_is_deterministic(self):
        package = ComposerPackage("acme", "widget", "1.2.3")

        first = self._normalize([package]).records[0].sha1sum
        second = DependencyNormalizer().normalize(
            "/elsewhere/composer.lock", "C", [package], "composer.lock"
        ).records[0].sha1sum

        assert first == second

    def test_content_hash_changes_with_each_component(self):
        packages = [
            ComposerPackage("acme", "widget", "1.2.3"),
            ComposerPackage("other", "widget", "1.2.3"),
            ComposerPackage("acme", "gadget", "1.2.3"),
            ComposerPackage("acme", "widget", "1.2.4"),
        ]

        records = self._normalize(packages).records

        assert len({record.sha1sum for record in records}) == 4

    def test_three_evidence_items_at_highest_confidence(self):
        record = self._normalize([ComposerPackage("acme", "widget", "1.2.3")]).records[0]

        assert [(e.type, e.name, e.value) for e in record.evidence] == [
            (EvidenceType.VENDOR, "vendor", "acme"),
            (EvidenceType.PRODUCT, "product", "widget"),
            (EvidenceType.VERSION, "version", "1.2.3"),
        ]
        assert all(e.confidence is Confidence.HIGHEST for e in record.evidence)
        assert all(e.source == "composer.lock" for e in record.evidence)

    def test_one_record_per_distinct_triple(self):
        packages = [
            ComposerPackage("acme", "widget", "1.0.0"),
            ComposerPackage("acme", "widget", "2.0.0"),
            ComposerPackage("acme", "gadget", "1.0.0"),
            ComposerPackage("", "widget", "1.0.0"),
        ]

        records = self._normalize(packages).records

        assert len(records) == 4
        assert len({record.file_path for record in records}) == 4

    def test_repeated_triple_collapses_to_one_record(self):
        packages = [
            ComposerPackage("acme", "widget", "1.0.0"),
            ComposerPackage("acme", "widget", "1.0.0", dev=True),
        ]

        result = self._normalize(packages)

        assert len(result.records) == 1
        assert result.supersedes_placeholder

    def test_records_keep_input_order(self, sample_lock_data):
        packages = _parse(sample_lock_data)

        records = self._normalize(packages).records

        assert [r.name for r in records] == ["console", "monolog", "phpunit"]

    def test_accepts_generator_input(self, sample_lock_data):
        result = self._normalize(parse_composer_lock(_stream(sample_lock_data)))

        assert len(result.records) == 3

    def test_injected_hash_function_is_used(self):
        calls = []

        def fake_hash(data: bytes) -> str:
            calls.append(data)
            return "f" * 40

        normalizer = DependencyNormalizer(hash_function=fake_hash)
        result = normalizer.normalize(
            "composer.lock", "C", [ComposerPackage("a", "b", "1")], "composer.lock"
        )

        assert calls == [b"C:a/b/1"]
        assert result.records[0].sha1sum == "f" * 40

    def test_hash_function_failure_propagates(self):
        def broken_hash(data: bytes) -> str:
            raise ConfigurationFault("digest unavailable")

        normalizer = DependencyNormalizer(hash_function=broken_hash)

        with pytest.raises(ConfigurationFault):
            normalizer.normalize(
                "composer.lock", "C", [ComposerPackage("a", "b", "1")], "composer.lock"
            )


class TestPlaceholderDecision:
    """Test when the lock file's own record is superseded."""

    @pytest.mark.parametrize("name", ["composer.lock", "COMPOSER.LOCK", "other.lock"])
    def test_empty_sequence_never_supersedes(self, name):
        result = DependencyNormalizer().normalize("x", "C", [], name)

        assert result.records == ()
        assert result.supersedes_placeholder is False

    @pytest.mark.parametrize("name", ["composer.lock", "COMPOSER.LOCK", "Composer.Lock"])
    def test_lock_file_name_matches_case_insensitively(self, name):
        result = DependencyNormalizer().normalize(
            "x", "C", [ComposerPackage("a", "b", "1")], name
        )

        assert result.supersedes_placeholder is True

    @pytest.mark.parametrize("name", ["composer.json", "composer.lock.bak", "app.lock"])
    def test_other_names_are_retained(self, name):
        assert supersedes_placeholder(3, name) is False


class TestHashFunctionResolution:
    """Test resolving the configured digest."""

    def test_sha1(self):
        digest = resolve_hash_function("sha1")

        assert digest(b"abc") == hashlib.sha1(b"abc").hexdigest()
        assert len(digest(b"abc")) == 40

    def test_unknown_algorithm_raises_configuration_fault(self):
        with pytest.raises(ConfigurationFault, match="no-such-digest"):
            resolve_hash_function("no-such-digest")

    def test_variable_length_digest_raises_configuration_fault(self):
        with pytest.raises(ConfigurationFault, match="shake_128"):
            resolve_hash_function("shake_128")


class TestDependencyModel:
    """Test the dependency data structures."""

    def test_placeholder_display_name_and_container(self):
        placeholder = PlaceholderDependency("/srv/app/composer.lock")

        assert placeholder.display_file_name == "composer.lock"
        assert placeholder.container_path == "/srv/app/composer.lock"

    def test_placeholder_logical_path_wins(self):
        placeholder = PlaceholderDependency(
            "/tmp/extracted/composer.lock", file_path="app.zip/composer.lock"
        )

        assert placeholder.container_path == "app.zip/composer.lock"

    def test_record_is_immutable(self):
        record = DependencyNormalizer().normalize(
            "/srv/app/composer.lock", "C", [ComposerPackage("a", "b", "1")], "x"
        ).records[0]

        with pytest.raises(AttributeError):
            record.version = "2"

    def test_record_to_dict(self):
        record = DependencyNormalizer().normalize(
            "/srv/app/composer.lock",
            "/srv/app/composer.lock",
            [ComposerPackage("acme", "widget", "1.2.3")],
            "composer.lock",
        ).records[0]

        data = record.to_dict()

        assert data["name"] == "widget"
        assert data["file_path"] == "/srv/app/composer.lock:acme/widget/1.2.3"
        assert data["ecosystem"] == "Composer"
        assert data["evidence"][0] == {
            "type": "vendor",
            "source": "composer.lock",
            "name": "vendor",
            "value": "acme",
            "confidence": "HIGHEST",
        }
        assert record.display_file_name == "composer.lock:acme/widget/1.2.3"

    def test_display_name_with_colon_in_version(self):
        record = DependencyNormalizer().normalize(
            "/srv/app/composer.lock",
            "bundle.zip:/composer.lock",
            [ComposerPackage("acme", "widget", "1:2.0")],
            "composer.lock",
        ).records[0]

        assert record.vendor == "acme"
        assert record.display_file_name == "composer.lock:acme/widget/1:2.0"

    def test_record_equality(self):
        kwargs = dict(
            actual_file_path="a",
            file_path="a:b/c/1",
            name="c",
            version="1",
            ecosystem="Composer",
            sha1sum="0" * 40,
        )

        assert DependencyRecord(**kwargs) == DependencyRecord(**kwargs)
