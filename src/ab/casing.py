"""Name normalization shared by manifests, metadata and CSS classes.

  "Percentage Split" -> class name "percentage-split" -> camel "percentageSplit"
  "Challenger 1"     -> class name "challenger-1"     -> camel "challenger-1"

Only a letter after a dash is upper-cased, so variant ids such as
"challenger-1" survive camel-casing unchanged.
"""

import re

_NON_ALNUM = re.compile(r"[^0-9a-z]", re.IGNORECASE)
_DASH_RUNS = re.compile(r"-+")
_DASH_LETTER = re.compile(r"-([a-z])")


def to_class_name(name) -> str:
    if not isinstance(name, str):
        return ""
    slug = _NON_ALNUM.sub("-", name.lower())
    return _DASH_RUNS.sub("-", slug).strip("-")


def to_camel_case(name) -> str:
    return _DASH_LETTER.sub(lambda m: m.group(1).upper(), to_class_name(name))
