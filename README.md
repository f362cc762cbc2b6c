# wasmpkg

A library for getting a Rust crate that has already been compiled to WebAssembly
ready for npm. It reads the crate's `Cargo.toml`, `Cargo.lock` and `cargo metadata`
output, writes a `package.json`, copies the README and license files, and runs
`npm pack`, `npm publish` and `npm login`.

## Installation

```
pip install wasmpkg
```

It has no dependencies beyond the standard library. `cargo` must be on `PATH` for
`CrateData.new`, and `npm` for the functions in `wasmpkg.npm`.

## Modules

- `wasmpkg.manifest`
  - `CrateData.new(crate_path, out_name)` runs `cargo metadata` and parses `Cargo.toml`.
    Unknown keys under `package.metadata` that contain `wasm-pack`, or that are one edit
    away from `package.metadata.wasm-pack`, are printed as warnings.
  - `check_crate_config()` raises `ManifestError` unless a target builds a `cdylib`.
  - `crate_name()` gives the library name with `-` turned into `_`. `name_prefix()`
    gives `out_name` if it was set, and the crate name otherwise.
  - `crate_license()`, `crate_license_file()`, `npm_license()`, `target_directory()`
    and `workspace_root()` return what their names say.
  - `configured_profile(BuildProfile.…)` returns the crate's profile settings.
  - `package_for(scope, disable_dts, target, out_dir)` builds the package.json document.
    `write_package_json(out_dir, scope, disable_dts, target)` writes it to
    `out_dir/package.json`. The `Target` values are `BUNDLER`, `NODEJS`, `WEB` and
    `NO_MODULES`. Files in `out_dir` named `LICENSE*`, other than `LICENSE` itself, are
    added to `files`. A note is printed when `description`, `repository` or `license`
    is missing.
  - `parse_crate_data`, `warn_for_unused_keys`, `CargoManifest.from_dict` and
    `levenshtein` are the pieces that `CrateData.new` is built from.
- `wasmpkg.profile`: `BuildProfile` (`DEV`, `RELEASE`, `PROFILING`),
  `CargoWasmPackProfile` and `CargoWasmPackProfiles`. They read
  `[package.metadata.wasm-pack.profile.<name>.wasm-bindgen]` with the keys
  `debug-js-glue`, `demangle-name-section` and `dwarf-debug-info`. Any key left out takes
  the profile's default. Dev turns on `debug-js-glue`; release and profiling turn it off.
  All three profiles turn on `demangle-name-section` and turn off `dwarf-debug-info`.
- `wasmpkg.package_json`: the `Repository`, `CommonJSPackage`, `ESModulesPackage` and
  `NoModulesPackage` documents, with `to_dict()` on each and `to_json(package)`.
  Optional fields that are empty are left out.
- `wasmpkg.lockfile`: `Lockfile.new(crate_data)` reads `Cargo.lock` from the workspace
  root. `Lockfile.from_str(text)` parses the text of a lock file. The methods are
  `wasm_bindgen_version()`, `wasm_bindgen_test_version()` and `require_wasm_bindgen()`.
- `wasmpkg.license.copy_from_crate(crate_data, path, out_dir)`: when `license` is set,
  copies every `LICENSE*` file. When only `license-file` is set, copies that file.
- `wasmpkg.readme.copy_from_crate(path, out_dir)`: copies `README.md`, and prints a
  warning if there is none.
- `wasmpkg.npm`: `npm_pack(path)`, `npm_publish(path, access)` and
  `npm_login(registry, scope, always_auth, auth_type)`. The registry defaults to
  `DEFAULT_NPM_REGISTRY`.
- `wasmpkg.version_check`: `latest_version(stamp_path, fetch)` returns the newest
  published version. The answer is cached in a stamp file for 24 hours.
  `fetch_latest_version()` asks the crates registry. The stamp file helpers are
  `stamp_file_value`, `read_stamp_file` and `write_stamp_file`.
- `wasmpkg.progress`: `ProgressOutput` with `info`, `warn` and `error`, and the shared
  `PBAR` instance. Messages go to standard error.
- `wasmpkg.target`: the platform flags `LINUX`, `MACOS`, `WINDOWS`, `X86_64` and `X86`.

## Usage

```python
from pathlib import Path

from wasmpkg import license, readme
from wasmpkg.lockfile import Lockfile
from wasmpkg.manifest import CrateData, Target
from wasmpkg.npm import npm_pack
from wasmpkg.profile import BuildProfile

crate = Path("my-crate")
out_dir = crate / "pkg"
out_dir.mkdir(exist_ok=True)

data = CrateData.new(crate, None)
data.check_crate_config()

readme.copy_from_crate(crate, out_dir)
license.copy_from_crate(data, crate, out_dir)
data.write_package_json(out_dir, "my-scope", False, Target.BUNDLER)

print(Lockfile.new(data).require_wasm_bindgen())
print(data.configured_profile(BuildProfile.RELEASE))

npm_pack(out_dir)
```

## Errors

Problems are reported by raising exceptions:

- `ManifestError`: a missing or invalid `Cargo.toml`, a failed `cargo metadata` run, or
  a crate that is not a `cdylib`. Badly typed profile settings found while a manifest is
  parsed are also reported this way.
- `ProfileError`: badly typed settings passed straight to the profile classes.
- `LockfileError`: a missing or malformed `Cargo.lock`, or no `wasm-bindgen` entry in it.
- `NpmError`: an npm command that fails or cannot be started.
- `NotADirectoryError`: the crate directory or the output directory passed to the copy
  functions does not exist.

## What it does not do

There is no command-line program. The package does not compile the crate and does not
run `wasm-bindgen` or any other build step. It does not download or install tools, and it
does not run tests. It only works on a crate that has already been built.