from __future__ import annotations

import xxhash

# Must stay fixed: every cached Main under generated-code was named with it.
HASH_SEED = 8675309
MODULE_PREFIX = "Main"


def content_hash(text: str, seed: int = HASH_SEED) -> int:
    # surrogatepass keeps lone surrogates hashable instead of raising
    return xxhash.xxh64(text.encode("utf-8", "surrogatepass"), seed=seed).intdigest()


def module_name_for(text: str) -> str:
    """
    Derive the generated module name from the program text.

    Running `elm-test Foo.elm`, then `elm-test Bar.elm`, then `elm-test Foo.elm`
    again finds the first Main still on disk under the same name, so the
    compiler does not rebuild it. Any change to the text yields a new name.
    """

    return f"{MODULE_PREFIX}{content_hash(text):x}"
