"""Generate a batch comparison payload for load testing.

Depth mix: 10% depth 5, 30% depth 3, 60% depth 2. About 70% of pairs are
identical; the rest differ in one attribute or one text value.

    python scripts/gen_payload.py 100000 --seed 42 > payload.json
    xml-compare batch payload.json
"""

from __future__ import annotations

import argparse
import json
import random
import sys


def depth_for(index: int, total: int) -> int:
    percent = index / total * 100.0
    if percent < 10.0:
        return 5
    if percent < 40.0:
        return 3
    return 2


def build_xml(depth: int, seed: int, prefix: str, *, alter_attr: bool = False, alter_content: bool = False) -> str:
    if depth == 0:
        return f"{prefix}_{seed}_CHANGED" if alter_content else f"{prefix}_{seed}"
    tag = f"level{depth}"
    value = f"{seed}_CHANGED" if alter_attr and depth == 1 else str(seed)
    inner = build_xml(depth - 1, seed + 1, prefix, alter_attr=alter_attr, alter_content=alter_content)
    return f'<{tag} id="{prefix}_{depth}" value="{value}">{inner}</{tag}>'


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("count", type=int)
    ap.add_argument("--seed", type=int, default=42)
    args = ap.parse_args()

    rng = random.Random(args.seed)
    comparisons = []
    for i in range(args.count):
        depth = depth_for(i, args.count)
        base = rng.randrange(2**32)
        prefix = f"doc{i}"
        xml1 = build_xml(depth, base, prefix)
        if rng.random() < 0.7:
            xml2 = xml1
        elif rng.random() < 0.5:
            xml2 = build_xml(depth, base, prefix, alter_attr=True)
        else:
            xml2 = build_xml(depth, base, prefix, alter_content=True)
        comparisons.append({"xml1": xml1, "xml2": xml2, "ignore_paths": [], "ignore_properties": []})
        if (i + 1) % 10_000 == 0:
            print(f"Generated {i + 1}/{args.count} pairs", file=sys.stderr)

    json.dump({"comparisons": comparisons}, sys.stdout)
    sys.stdout.write("\n")


if __name__ == "__main__":
    main()
