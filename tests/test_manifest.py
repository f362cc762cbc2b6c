import json
import subprocess
from unittest import mock

import pytest

from wasmpkg.manifest import (
    CargoManifest,
    CrateData,
    ManifestError,
    Target,
    levenshtein,
    parse_crate_data,
    warn_for_unused_keys,
)
from wasmpkg.profile import BuildProfile

HELLO_TOML = """
[package]
authors = ["The wasm-pack developers"]
description = "so awesome rust+wasm package"
license = "WTFPL"
name = "js-hello-world"
repository = "https://example.com/js-hello-world.git"
version = "0.1.0"

[lib]
crate-type = ["cdylib"]

[dependencies]
wasm-bindgen = "0.2"
"""


def _metadata(root, name, *, lib_name=None, crate_types=("cdylib",)):
    return {
        "packages": [
            {
                "name": name,
                "version": "0.1.0",
                "authors": ["The wasm-pack developers"],
                "targets": [
                    {
                        "name": lib_name or name,
                        "kind": list(crate_types),
                        "crate_types": list(crate_types),
                    }
                ],
            }
        ],
        "target_directory": str(root / "target"),
        "workspace_root": str(root),
    }


def _crate(root, toml_text=HELLO_TOML, *, out_name=None, crate_types=("cdylib",), lib_name=None):
    manifest_path = root / "Cargo.toml"
    manifest_path.write_text(toml_text)
    parsed = parse_crate_data(manifest_path)
    meta = _metadata(root, parsed.manifest.package.name, lib_name=lib_name, crate_types=crate_types)
    return CrateData(meta, parsed.manifest, out_name)


def _write_and_read(crate, out_dir, scope=None, disable_dts=False, target=Target.BUNDLER):
    out_dir.mkdir(parents=True, exist_ok=True)
    crate.write_package_json(out_dir, scope, disable_dts, target)
    return json.loads((out_dir / "package.json").read_text())


def test_crate_name_provided_path(tmp_path):
    assert _crate(tmp_path).crate_name() == "js_hello_world"


def test_renamed_lib_gives_crate_name(tmp_path):
    crate = _crate(tmp_path, lib_name="bar")
    assert crate.crate_name() == "bar"


def test_default_name_prefix(tmp_path):
    assert _crate(tmp_path).name_prefix() == "js_hello_world"


def test_name_prefix_passed_in(tmp_path):
    assert _crate(tmp_path, out_name="index").name_prefix() == "index"


def test_has_cdylib(tmp_path):
    crate = _crate(tmp_path, crate_types=("cdylib", "rlib"))
    crate.check_crate_config()
    assert crate.crate_name() == "js_hello_world"


def test_no_cdylib_is_error(tmp_path):
    crate = _crate(tmp_path, crate_types=("rlib",))
    with pytest.raises(ManifestError, match="crate-type must be cdylib"):
        crate.check_crate_config()


def test_wrong_crate_type_is_error(tmp_path):
    crate = _crate(tmp_path, crate_types=("foo",))
    with pytest.raises(ManifestError, match="cdylib"):
        crate.check_crate_config()


def test_package_json_bundler(tmp_path):
    pkg = _write_and_read(_crate(tmp_path), tmp_path / "pkg")
    assert pkg["name"] == "js-hello-world"
    assert pkg["repository"] == {"type": "git", "url": "https://example.com/js-hello-world.git"}
    assert pkg["module"] == "js_hello_world.js"
    assert pkg["types"] == "js_hello_world.d.ts"
    assert pkg["sideEffects"] == "false"
    assert pkg["collaborators"] == ["The wasm-pack developers"]
    assert pkg["license"] == "WTFPL"
    assert set(pkg["files"]) == {
        "js_hello_world_bg.wasm",
        "js_hello_world.d.ts",
        "js_hello_world.js",
    }


def test_package_json_with_scope(tmp_path):
    pkg = _write_and_read(_crate(tmp_path), tmp_path / "pkg", scope="test")
    assert pkg["name"] == "@test/js-hello-world"
    assert pkg["module"] == "js_hello_world.js"
    assert set(pkg["files"]) == {
        "js_hello_world_bg.wasm",
        "js_hello_world.d.ts",
        "js_hello_world.js",
    }


def test_package_json_on_node(tmp_path):
    pkg = _write_and_read(_crate(tmp_path), tmp_path / "pkg", target=Target.NODEJS)
    assert pkg["name"] == "js-hello-world"
    assert pkg["repository"]["type"] == "git"
    assert pkg["main"] == "js_hello_world.js"
    assert pkg["types"] == "js_hello_world.d.ts"
    assert "module" not in pkg
    assert set(pkg["files"]) == {
        "js_hello_world_bg.wasm",
        "js_hello_world_bg.js",
        "js_hello_world.d.ts",
        "js_hello_world.js",
    }


def test_package_json_on_nomodules(tmp_path):
    pkg = _write_and_read(_crate(tmp_path), tmp_path / "pkg", target=Target.NO_MODULES)
    assert pkg["browser"] == "js_hello_world.js"
    assert pkg["types"] == "js_hello_world.d.ts"
    assert set(pkg["files"]) == {
        "js_hello_world_bg.wasm",
        "js_hello_world.js",
        "js_hello_world.d.ts",
    }


def test_package_json_on_web(tmp_path):
    pkg = _write_and_read(_crate(tmp_path), tmp_path / "pkg", target=Target.WEB)
    assert pkg["module"] == "js_hello_world.js"
    assert pkg["sideEffects"] == "false"


def test_package_json_with_out_name(tmp_path):
    pkg = _write_and_read(_crate(tmp_path, out_name="index"), tmp_path / "pkg")
    assert pkg["name"] == "js-hello-world"
    assert pkg["module"] == "index.js"
    assert pkg["types"] == "index.d.ts"
    assert pkg["sideEffects"] == "false"
    assert set(pkg["files"]) == {"index_bg.wasm", "index.d.ts", "index.js"}


def test_package_json_in_out_dir(tmp_path):
    out_dir = tmp_path / "custom" / "out"
    pkg = _write_and_read(_crate(tmp_path), out_dir)
    assert (out_dir / "package.json").is_file()
    assert pkg["name"] == "js-hello-world"


def test_package_json_types_skipped(tmp_path):
    pkg = _write_and_read(_crate(tmp_path), tmp_path / "pkg", disable_dts=True)
    assert pkg["module"] == "js_hello_world.js"
    assert "types" not in pkg
    assert set(pkg["files"]) == {"js_hello_world_bg.wasm", "js_hello_world.js"}


def test_homepage_field(tmp_path):
    with_home = tmp_path / "home"
    with_home.mkdir()
    toml_text = HELLO_TOML.replace(
        'version = "0.1.0"', 'version = "0.1.0"\nhomepage = "https://example.com/docs/"'
    )
    pkg = _write_and_read(_crate(with_home, toml_text), with_home / "pkg", disable_dts=True)
    assert pkg["homepage"] == "https://example.com/docs/"

    without = tmp_path / "plain"
    without.mkdir()
    pkg = _write_and_read(_crate(without), without / "pkg", disable_dts=True)
    assert "homepage" not in pkg


def test_license_files_listed(tmp_path):
    out_dir = tmp_path / "pkg"
    out_dir.mkdir()
    for name in ("LICENSE-WTFPL", "LICENSE-MIT", "LICENSE"):
        (out_dir / name).write_text("text")
    pkg = _write_and_read(_crate(tmp_path), out_dir)
    assert "LICENSE-WTFPL" in pkg["files"]
    assert "LICENSE-MIT" in pkg["files"]
    assert "LICENSE" not in pkg["files"]


def test_license_file_in_npm_license(tmp_path):
    toml_text = HELLO_TOML.replace('license = "WTFPL"', 'license-file = "NON-STANDARD-LICENSE"')
    crate = _crate(tmp_path, toml_text)
    assert crate.crate_license() is None
    assert crate.crate_license_file() == "NON-STANDARD-LICENSE"
    assert crate.npm_license() == "SEE LICENSE IN NON-STANDARD-LICENSE"


def test_missing_optional_fields_reported(tmp_path, capsys):
    toml_text = '[package]\nname = "bare"\nversion = "0.1.0"\n'
    crate = _crate(tmp_path, toml_text)
    package = crate.package_for(None, False, Target.BUNDLER, tmp_path)
    err = capsys.readouterr().err
    assert (
        "Optional fields missing from Cargo.toml: 'description', 'repository', and 'license'. "
        "These are not necessary, but recommended" in err
    )
    assert package.to_dict()["name"] == "bare"


def test_one_missing_optional_field_reported(tmp_path, capsys):
    toml_text = HELLO_TOML.replace('description = "so awesome rust+wasm package"\n', "")
    _crate(tmp_path, toml_text).package_for(None, False, Target.BUNDLER, tmp_path)
    assert "Optional field missing from Cargo.toml: 'description'." in capsys.readouterr().err


def test_debug_js_glue_configured_incorrectly(tmp_path):
    toml_text = HELLO_TOML + (
        "\n[package.metadata.wasm-pack.profile.dev.wasm-bindgen]\n"
        'debug-js-glue = "not a boolean"\n'
    )
    (tmp_path / "Cargo.toml").write_text(toml_text)
    with pytest.raises(ManifestError) as info:
        parse_crate_data(tmp_path / "Cargo.toml")
    assert "package.metadata.wasm-pack.profile.dev.wasm-bindgen.debug" in str(info.value)


@pytest.mark.parametrize("debug", [True, False])
def test_configured_profile(tmp_path, debug):
    toml_text = HELLO_TOML + (
        "\n[package.metadata.wasm-pack.profile.dev.wasm-bindgen]\n"
        f"debug-js-glue = {str(debug).lower()}\n"
    )
    crate = _crate(tmp_path, toml_text)
    dev = crate.configured_profile(BuildProfile.DEV)
    assert dev.wasm_bindgen_debug_js_glue is debug
    assert dev.wasm_bindgen_demangle_name_section is True
    assert crate.configured_profile(BuildProfile.RELEASE).wasm_bindgen_debug_js_glue is False


def test_unused_keys_reported(tmp_path, capsys):
    toml_text = HELLO_TOML + (
        "\n[package.metadata.wasm-pack.profile.production.wasm-bindgen]\n"
        "debug-js-glue = true\n"
    )
    (tmp_path / "Cargo.toml").write_text(toml_text)
    parsed = parse_crate_data(tmp_path / "Cargo.toml")
    assert parsed.unused_keys == ("package.metadata.wasm-pack.profile.production",)
    warn_for_unused_keys(parsed)
    assert (
        '[WARN]: "package.metadata.wasm-pack.profile.production" is an unknown key and will '
        "be ignored. Please check your Cargo.toml." in capsys.readouterr().err
    )


def test_unused_keys_near_miss_and_unrelated(tmp_path):
    toml_text = HELLO_TOML + "\n[package.metadata.wasm_pack]\nfoo = 1\n[package.metadata.docs]\nx = 1\n"
    (tmp_path / "Cargo.toml").write_text(toml_text)
    parsed = parse_crate_data(tmp_path / "Cargo.toml")
    assert parsed.unused_keys == ("package.metadata.wasm_pack",)


def test_from_dict_reports_all_unread_keys():
    seen = []
    manifest = CargoManifest.from_dict(
        {"package": {"name": "x", "version": "1"}, "lib": {}}, seen.append
    )
    assert manifest.package.name == "x"
    assert sorted(seen) == ["lib", "package.version"]


def test_from_dict_missing_name():
    with pytest.raises(ManifestError, match="name"):
        CargoManifest.from_dict({"package": {"version": "1"}})


def test_from_dict_wrong_type():
    with pytest.raises(ManifestError, match="package.description"):
        CargoManifest.from_dict({"package": {"name": "x", "description": 3}})


def test_invalid_toml(tmp_path):
    (tmp_path / "Cargo.toml").write_text("[package\n")
    with pytest.raises(ManifestError, match="failed to parse manifest"):
        parse_crate_data(tmp_path / "Cargo.toml")


def test_package_not_in_metadata(tmp_path):
    (tmp_path / "Cargo.toml").write_text(HELLO_TOML)
    parsed = parse_crate_data(tmp_path / "Cargo.toml")
    with pytest.raises(ManifestError, match="failed to find package in metadata"):
        CrateData(_metadata(tmp_path, "other"), parsed.manifest)


def test_new_in_non_crate_directory(tmp_path):
    with pytest.raises(ManifestError, match="missing a `Cargo.toml`"):
        CrateData.new(tmp_path)


def test_new_runs_cargo_metadata(tmp_path):
    (tmp_path / "Cargo.toml").write_text(HELLO_TOML)
    meta = _metadata(tmp_path, "js-hello-world")
    completed = subprocess.CompletedProcess(args=[], returncode=0, stdout=json.dumps(meta), stderr="")
    with mock.patch("subprocess.run", return_value=completed) as run:
        crate = CrateData.new(tmp_path, "index")
    command = run.call_args.args[0]
    assert command[:2] == ["cargo", "metadata"]
    assert "--manifest-path" in command
    assert crate.name_prefix() == "index"
    assert crate.workspace_root() == tmp_path
    assert crate.target_directory() == tmp_path / "target"


def test_new_reports_cargo_failure(tmp_path):
    (tmp_path / "Cargo.toml").write_text(HELLO_TOML)
    completed = subprocess.CompletedProcess(args=[], returncode=101, stdout="", stderr="boom")
    with mock.patch("subprocess.run", return_value=completed):
        with pytest.raises(ManifestError, match="boom"):
            CrateData.new(tmp_path)


@pytest.mark.parametrize(
    "a, b, expected",
    [("kitten", "sitting", 3), ("", "abc", 3), ("abc", "", 3), ("same", "same", 0)],
)
def test_levenshtein(a, b, expected):
    assert levenshtein(a, b) == expected