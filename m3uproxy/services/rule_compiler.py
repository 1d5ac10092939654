#!/usr/bin/env python3
"""
Rule Compiler Module

This module turns a model's raw filter and transformation rules into
compiled, immutable rules ready for matching. The model configuration
itself is never modified, so one compiled model can be shared safely
between concurrent pipelines.

@package M3U Proxy
@author Kevin Pirnie <me@kpirnie.com>
@copyright Copyright (c) 2025
"""

# setup the imports
import re, logging
from dataclasses import dataclass
from typing import Optional, Tuple
from m3uproxy.models import ModelConfig

# setup the logger
logger = logging.getLogger(__name__)

# javascript style references: $$, $&, $1 .. $99, $<name>
_JS_REFERENCE = re.compile(r'\$(?:(\$)|(&)|(\d{1,2})|<([A-Za-z_]\w*)>)')


class RuleCompileError(ValueError):
    """Raised when a filter or transformation pattern is not a valid regex"""


@dataclass(frozen=True)
class CompiledFilter:
    """A filter rule with its pattern compiled"""
    field: str
    pattern: re.Pattern


@dataclass(frozen=True)
class CompiledTransformation:
    """A transformation rule with its pattern compiled"""
    field: str
    pattern: re.Pattern
    replacement: str


@dataclass(frozen=True)
class CompiledModel:
    """A model whose rules are ready for evaluation"""
    name: str
    filters: Tuple[CompiledFilter, ...] = ()
    transformations: Tuple[CompiledTransformation, ...] = ()

"""
Resolve a numbered $ reference the way javascript does
Two digits name a group only when that group exists, otherwise the first
digit does and the second is literal text. Unknown groups stay literal.

@param digits: str One or two digits following the $
@param groups: int|None Group count of the pattern, None when unknown
@return str: Python template text
"""
def _group_reference(digits: str, groups: Optional[int]) -> str:

    # nothing to check against
    if groups is None:
        return rf"\g<{int(digits)}>"

    if len(digits) == 2 and 1 <= int(digits) <= groups:
        return rf"\g<{int(digits)}>"
    if 1 <= int(digits[0]) <= groups:
        return rf"\g<{digits[0]}>" + digits[1:]

    return "$" + digits

"""
Translate $-style group references into python template syntax

Backslash references (\\1, \\g<name>) are left alone, so both styles work.

@param substitution: str Raw substitution text from the config
@param groups: int|None Group count of the pattern, $nn falls back to $n then a digit beyond it
@return str: Replacement template usable with re.sub
"""
def translate_substitution(substitution: str, groups: Optional[int] = None) -> str:

    def _replace(match: re.Match) -> str:
        if match.group(1):
            return '$'
        if match.group(2):
            return r'\g<0>'
        if match.group(3):
            return _group_reference(match.group(3), groups)
        return rf'\g<{match.group(4)}>'

    return _JS_REFERENCE.sub(_replace, substitution)

"""
Compile a single pattern case-insensitively

@param regex: str Raw pattern
@param model_name: str Owning model, for the error message
@param field: str Target field, for the error message
@return re.Pattern: The compiled pattern
@throws RuleCompileError: When the pattern is invalid
"""
def _compile(regex: str, model_name: str, field: str) -> re.Pattern:

    # try to compile it
    try:
        return re.compile(regex, re.IGNORECASE)

    # whoops... re-raise it as a config error
    except re.error as e:
        raise RuleCompileError(
            f"Invalid pattern '{regex}' for field '{field}' in model '{model_name}': {e}"
        ) from e

"""
Compile all rules of a model

@param model: ModelConfig Raw model configuration
@return CompiledModel: Immutable compiled model
@throws RuleCompileError: When any pattern or replacement is invalid
"""
def compile_model(model: ModelConfig) -> CompiledModel:

    # compile the filters
    filters = tuple(
        CompiledFilter(field=f.field, pattern=_compile(f.regex, model.name, f.field))
        for f in model.filters
    )

    # compile the transformations
    transformations = []
    for t in model.transformations:
        pattern = _compile(t.regex, model.name, t.field)
        replacement = translate_substitution(t.substitution, pattern.groups)

        # the template is parsed eagerly, so bad group references surface here
        try:
            pattern.sub(replacement, '')
        except (re.error, IndexError) as e:
            raise RuleCompileError(
                f"Invalid substitution '{t.substitution}' for field '{t.field}' in model '{model.name}': {e}"
            ) from e

        transformations.append(CompiledTransformation(field=t.field, pattern=pattern, replacement=replacement))

    # log and return it
    logger.debug(f"Compiled model '{model.name}': {len(filters)} filters, {len(transformations)} transformations")
    return CompiledModel(name=model.name, filters=filters, transformations=tuple(transformations))
