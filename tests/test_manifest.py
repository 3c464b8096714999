import json
import subprocess
from unittest.mock import patch

import pytest

from wasmpack.manifest import (
    CrateData,
    ManifestAndUnusedKeys,
    ManifestError,
    Target,
    levenshtein,
    parse_crate_data,
    warn_for_unused_keys,
)
from wasmpack.npm_package import CommonJSPackage, ESModulesPackage, NoModulesPackage
from wasmpack.profile import BuildProfile

FULL_TOML = """
[package]
authors = ["The wasm-pack developers"]
description = "so awesome rust+wasm package"
license = "WTFPL"
name = "js-hello-world"
repository = "https://example.com/repo.git"
version = "0.1.0"

[lib]
crate-type = ["cdylib"]
"""

BARE_TOML = """
[package]
name = "js-hello-world"
version = "0.1.0"
"""

CDYLIB_TARGET = {"name": "js-hello-world", "kind": ["cdylib"], "crate_types": ["cdylib"]}


def make_crate(tmp_path, text=FULL_TOML, targets=None, out_name=None, keywords=()):
    crate_dir = tmp_path / "crate"
    crate_dir.mkdir(exist_ok=True)
    manifest_path = crate_dir / "Cargo.toml"
    manifest_path.write_text(text)
    parsed = parse_crate_data(manifest_path)
    package = {
        "name": "js-hello-world",
        "version": "0.1.0",
        "authors": ["The wasm-pack developers"],
        "keywords": list(keywords),
        "manifest_path": str(manifest_path),
        "targets": [CDYLIB_TARGET] if targets is None else targets,
    }
    return CrateData(
        package=package,
        manifest=parsed.manifest,
        workspace_root=crate_dir,
        target_directory=crate_dir / "target",
        out_name=out_name,
    )


def test_levenshtein_identity_and_symmetry():
    assert levenshtein("package.metadata.wasm-pack", "package.metadata.wasm-pack") == 0
    assert levenshtein("abc", "") == 3
    assert levenshtein("wasm-pack", "wasmpack") == levenshtein("wasmpack", "wasm-pack") == 1


def test_parse_crate_data_reads_package(tmp_path):
    crate = make_crate(tmp_path)
    assert crate.manifest.name == "js-hello-world"
    assert crate.manifest.description == "so awesome rust+wasm package"
    assert crate.manifest.license == "WTFPL"
    assert crate.manifest.license_file is None


def test_parse_crate_data_collects_unused_keys(tmp_path):
    path = tmp_path / "Cargo.toml"
    path.write_text(
        BARE_TOML
        + """
[package.metadata.wasm-pack.profile.production]
wasm-opt = false

[package.metadata.wasmpack]
x = 1

[package.metadata.docs]
all = true

[package.metadata.wasm-pack.profile.release.wasm-bindgen]
debug-js-glue = true
unknown-flag = true
"""
    )
    parsed = parse_crate_data(path)
    assert parsed.unused_keys == [
        "package.metadata.wasm-pack.profile.production",
        "package.metadata.wasm-pack.profile.release.wasm-bindgen.unknown-flag",
        "package.metadata.wasmpack",
    ]
    release = parsed.manifest.profiles.get(BuildProfile.RELEASE)
    assert release.debug_js_glue is True
    assert release.wasm_opt_args() == ["-O"]


def test_parse_crate_data_missing_file(tmp_path):
    with pytest.raises(ManifestError, match="failed to read"):
        parse_crate_data(tmp_path / "Cargo.toml")


def test_parse_crate_data_without_name(tmp_path):
    path = tmp_path / "Cargo.toml"
    path.write_text('[package]\nversion = "0.1.0"\n')
    with pytest.raises(ManifestError, match="failed to parse manifest"):
        parse_crate_data(path)


def test_parse_crate_data_bad_profile_value(tmp_path):
    path = tmp_path / "Cargo.toml"
    path.write_text(BARE_TOML + '\n[package.metadata.wasm-pack.profile.dev]\nwasm-opt = "yes"\n')
    with pytest.raises(ManifestError):
        parse_crate_data(path)


def test_warn_for_unused_keys(capsys):
    parsed = ManifestAndUnusedKeys(manifest=None, unused_keys=["package.metadata.wasmpack"])
    warn_for_unused_keys(parsed)
    err = capsys.readouterr().err
    assert '"package.metadata.wasmpack" is an unknown key and will be ignored.' in err


def test_configured_profile_defaults(tmp_path):
    crate = make_crate(tmp_path)
    assert crate.configured_profile(BuildProfile.DEV).wasm_opt_args() is None
    assert crate.configured_profile(BuildProfile.DEV).debug_js_glue is True
    assert crate.configured_profile(BuildProfile.PROFILING).wasm_opt_args() == ["-O"]


def test_check_crate_config_accepts_cdylib(tmp_path):
    crate = make_crate(tmp_path)
    crate.check_crate_config()
    assert crate.crate_name() == "js_hello_world"


def test_check_crate_config_rejects_rlib(tmp_path):
    crate = make_crate(tmp_path, targets=[{"name": "foo", "kind": ["lib"], "crate_types": ["rlib"]}])
    with pytest.raises(ManifestError, match="crate-type must be cdylib"):
        crate.check_crate_config()


def test_crate_name_prefers_cdylib_target(tmp_path):
    crate = make_crate(tmp_path, targets=[{"name": "my-lib", "kind": ["cdylib"], "crate_types": ["cdylib"]}])
    assert crate.crate_name() == "my_lib"
    assert crate.name_prefix() == "my_lib"


def test_name_prefix_uses_out_name(tmp_path):
    crate = make_crate(tmp_path, out_name="custom")
    assert crate.name_prefix() == "custom"


def test_license_falls_back_to_license_file(tmp_path):
    crate = make_crate(tmp_path, text=BARE_TOML.replace('version = "0.1.0"', 'license-file = "LICENSE-MIT"'))
    assert crate.license() == "SEE LICENSE IN LICENSE-MIT"
    assert make_crate(tmp_path, text=BARE_TOML).license() is None


def test_package_for_nodejs(tmp_path):
    crate = make_crate(tmp_path)
    out_dir = tmp_path / "pkg"
    out_dir.mkdir()
    pkg = crate.package_for(Target.NODEJS, None, False, out_dir)
    assert isinstance(pkg, CommonJSPackage)
    assert pkg.main == "js_hello_world.js"
    assert pkg.files == ["js_hello_world_bg.wasm", "js_hello_world.js", "js_hello_world.d.ts"]
    assert pkg.types == "js_hello_world.d.ts"
    assert pkg.repository.url == "https://example.com/repo.git"
    assert pkg.keywords is None


def test_package_for_bundler_adds_bg_js_and_licenses(tmp_path):
    crate = make_crate(tmp_path, keywords=["wasm"])
    out_dir = tmp_path / "pkg"
    out_dir.mkdir()
    (out_dir / "LICENSE").write_text("x")
    (out_dir / "LICENSE-MIT").write_text("x")
    pkg = crate.package_for(Target.BUNDLER, "myscope", True, out_dir)
    assert isinstance(pkg, ESModulesPackage)
    assert pkg.name == "@myscope/js-hello-world"
    assert pkg.files == [
        "js_hello_world_bg.wasm",
        "js_hello_world.js",
        "js_hello_world_bg.js",
        "LICENSE-MIT",
    ]
    assert pkg.types is None
    assert pkg.side_effects is False
    assert pkg.keywords == ["wasm"]


def test_package_for_web_and_no_modules(tmp_path):
    crate = make_crate(tmp_path)
    out_dir = tmp_path / "pkg"
    web = crate.package_for(Target.WEB, None, False, out_dir)
    assert isinstance(web, ESModulesPackage)
    assert "js_hello_world_bg.js" not in web.files
    no_modules = crate.package_for(Target.NO_MODULES, None, False, out_dir)
    assert isinstance(no_modules, NoModulesPackage)
    assert no_modules.browser == "js_hello_world.js"


def test_missing_optional_fields_are_reported(tmp_path, capsys):
    crate = make_crate(tmp_path, text=BARE_TOML)
    crate.package_for(Target.NODEJS, None, False, tmp_path)
    err = capsys.readouterr().err
    assert (
        "Optional fields missing from Cargo.toml: 'description', 'repository', and 'license'. "
        "These are not necessary, but recommended"
    ) in err


def test_write_package_json_round_trip(tmp_path):
    crate = make_crate(tmp_path)
    out_dir = tmp_path / "pkg"
    out_dir.mkdir()
    crate.write_package_json(out_dir, None, False, Target.BUNDLER)
    data = json.loads((out_dir / "package.json").read_text())
    assert data["name"] == "js-hello-world"
    assert data["module"] == "js_hello_world.js"
    assert data["sideEffects"] is False
    assert data["license"] == "WTFPL"
    assert data["repository"] == {"type": "git", "url": "https://example.com/repo.git"}
    assert data["collaborators"] == ["The wasm-pack developers"]


def test_from_path_without_manifest(tmp_path):
    with pytest.raises(ManifestError, match="missing a `Cargo.toml` file"):
        CrateData.from_path(tmp_path, None)


def test_from_path_uses_cargo_metadata(tmp_path):
    manifest_path = tmp_path / "Cargo.toml"
    manifest_path.write_text(FULL_TOML)
    metadata = {
        "packages": [
            {"name": "other", "manifest_path": str(tmp_path / "other" / "Cargo.toml"), "targets": []},
            {
                "name": "js-hello-world",
                "version": "0.1.0",
                "authors": [],
                "keywords": [],
                "manifest_path": str(manifest_path),
                "targets": [CDYLIB_TARGET],
            },
        ],
        "workspace_root": str(tmp_path),
        "target_directory": str(tmp_path / "target"),
    }
    completed = subprocess.CompletedProcess([], 0, stdout=json.dumps(metadata), stderr="")
    with patch("wasmpack.manifest.subprocess.run", return_value=completed):
        crate = CrateData.from_path(tmp_path, "out")
    assert crate.package["name"] == "js-hello-world"
    assert crate.workspace_root == tmp_path
    assert crate.target_directory == tmp_path / "target"
    assert crate.name_prefix() == "out"


def test_from_path_package_not_in_metadata(tmp_path):
    (tmp_path / "Cargo.toml").write_text(FULL_TOML)
    metadata = {"packages": [], "workspace_root": str(tmp_path), "target_directory": str(tmp_path)}
    completed = subprocess.CompletedProcess([], 0, stdout=json.dumps(metadata), stderr="")
    with patch("wasmpack.manifest.subprocess.run", return_value=completed):
        with pytest.raises(ManifestError, match="failed to find package in metadata"):
            CrateData.from_path(tmp_path, None)


def test_from_path_cargo_failure(tmp_path):
    (tmp_path / "Cargo.toml").write_text(FULL_TOML)
    completed = subprocess.CompletedProcess([], 101, stdout="", stderr="boom")
    with patch("wasmpack.manifest.subprocess.run", return_value=completed):
        with pytest.raises(ManifestError, match="boom"):
            CrateData.from_path(tmp_path, None)