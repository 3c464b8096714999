# wasmpack

Helpers for turning a Rust crate that has been compiled to WebAssembly into
an npm package. The package reads a crate's `Cargo.toml` and `Cargo.lock`,
works out the `wasm-pack` build profiles, writes a `package.json` for the
chosen JavaScript target, copies the README and licence files into the output
directory and runs `npm` for packing, publishing and logging in.

It has no third-party dependencies.

## Installation

```
pip install .
```

For running the test suite:

```
pip install ".[test]"
pytest
```

## Modules

- `wasmpack.manifest` – `CrateData.from_path(crate_path, out_name)` reads a
  crate's `Cargo.toml` and runs `cargo metadata` (the `CARGO` environment
  variable, or `cargo` on `PATH`) to find the crate's package entry. A
  `CrateData` offers `crate_name()`, `name_prefix()`, `license()`,
  `configured_profile(profile)` and `check_crate_config()`, which raises
  `ManifestError` unless the crate has a `cdylib` target.
  `package_for(target, scope, disable_dts, out_dir)` builds the
  `package.json` content for one of the `Target` values (`BUNDLER`,
  `NODEJS`, `WEB`, `NO_MODULES`) and `write_package_json(out_dir, scope,
  disable_dts, target)` writes it. `parse_crate_data(manifest_path)` returns a
  `ManifestAndUnusedKeys`: the parsed `CargoPackage` and the unknown keys under
  `package.metadata` that mention `wasm-pack` or are one edit away from
  `package.metadata.wasm-pack`; `warn_for_unused_keys(...)` reports them.
  `levenshtein(a, b)` is the edit distance used for that check.
- `wasmpack.profile` – `BuildProfile` (`DEV`, `RELEASE`, `PROFILING`),
  `WasmPackProfile` with the `wasm-bindgen` switches and the `wasm-opt`
  setting, and `WasmPackProfiles` for all three. Unset values fall back to
  `WasmPackProfile.default_for(profile)`. `wasm_opt_args()` returns `None`
  when `wasm-opt` is disabled, `["-O"]` when it is simply enabled, or the
  explicit argument list.
- `wasmpack.npm_package` – the `package.json` shapes `CommonJSPackage`,
  `ESModulesPackage`, `NoModulesPackage` and `Repository`; `to_dict()` leaves
  out empty optional fields, and `to_json(package)` renders pretty JSON.
- `wasmpack.lockfile` – `Lockfile.parse(text)` and
  `Lockfile.from_crate(crate_data)`, which reads `Cargo.lock` at the
  workspace root; `wasm_bindgen_version()`, `wasm_bindgen_test_version()` and
  `require_wasm_bindgen()` (raises `LockfileError` when missing).
- `wasmpack.readme` – `copy_from_crate(path, out_dir)` copies `README.md`,
  warning when the crate has none.
- `wasmpack.license` – `glob_license_files(path)` and
  `copy_from_crate(crate_data, path, out_dir)`, which copies the `LICENSE*`
  files when the manifest sets `license`, or the manifest's `license-file`.
- `wasmpack.stamps` – a small JSON key/value store in a `.stamps` file next
  to the running program, or at a path you give: `save_stamp_value`,
  `read_stamps_file_to_json`, `get_stamp_value`, `get_stamps_file_path`.
- `wasmpack.latest_version` – `latest_version(stamp_path, fetch, now)`
  returns the newest released version, asking the crates registry
  (`fetch_latest_version()`) at most once every 24 hours and remembering the
  answer in a stamp file.
- `wasmpack.npm` – `npm_pack(path)`, `npm_publish(path, access, tag)` and
  `npm_login(registry, scope, always_auth, auth_type)` run `npm` and raise
  `NpmError` if it fails.
- `wasmpack.progress` – `ProgressOutput` prints `[INFO]`, `[WARN]` and
  `[ERR]` messages to standard error, filtered by `LogLevel` and a `quiet`
  switch; `PBAR` is the shared instance the other modules use.

## Example

```python
from pathlib import Path

from wasmpack.manifest import CrateData, Target
from wasmpack.profile import BuildProfile

crate = CrateData.from_path(Path("my-crate"), None)
crate.check_crate_config()

out_dir = Path("my-crate/pkg")
out_dir.mkdir(exist_ok=True)
crate.write_package_json(out_dir, None, False, Target.BUNDLER)

print(crate.configured_profile(BuildProfile.RELEASE).wasm_opt_args())
```

## Self-installation

```
wasmpack-install
```

finds `rustup` on `PATH` and copies the running program next to it as
`wasm-pack`. If a file is already there it asks before overwriting when run
interactively, and refuses otherwise; pass `-f` to overwrite without asking.

## What it does not do

There is no build command: the package does not compile crates, does not run
or download `wasm-bindgen`, `wasm-opt` or browser drivers, and does not run
tests. It covers the manifest, lockfile, `package.json`, file-copying and
`npm` steps, to be driven from your own code.