#!/usr/bin/env python3
"""
Stream Filter Module

This module decides whether a parsed channel entry belongs in a model's
output, and rewrites its fields using the model's transformation rules.
Filters always run before transformations.

@package M3U Proxy
@author Kevin Pirnie <me@kpirnie.com>
@copyright Copyright (c) 2025
"""

# setup the imports
import logging
from typing import Optional
from m3uproxy.models import ChannelEntry
from m3uproxy.services.rule_compiler import CompiledModel

# setup the logger
logger = logging.getLogger(__name__)

"""
Check if an entry should be included based on the model's filters
With no filters everything passes. Otherwise the first filter whose field
is present and whose pattern is found in the value lets the entry through.

@param entry: ChannelEntry Entry to evaluate
@param model: CompiledModel Model holding the filters
@return bool: True if the entry should be included, False otherwise
"""
def is_valid(entry: ChannelEntry, model: CompiledModel) -> bool:

    # no filters, everything passes
    if not model.filters:
        return True

    # for each filter, return true on the first hit
    for rule in model.filters:
        value = entry.get(rule.field)
        if value is not None and rule.pattern.search(value):
            return True

    # default to false
    return False

"""
Apply the model's transformations to an entry
Rules run in declared order, each replacing the first match in its field.
A rule whose field is missing on the entry is skipped.

@param entry: ChannelEntry Entry to rewrite in place
@param model: CompiledModel Model holding the transformations
@return ChannelEntry: The same entry
"""
def apply_transformations(entry: ChannelEntry, model: CompiledModel) -> ChannelEntry:

    # loop over each transformation
    for rule in model.transformations:
        value = entry.get(rule.field)

        # nothing to transform on this entry
        if value is None:
            logger.debug(f"Skipping transformation on missing field '{rule.field}' for '{entry.get('tvg-name', '')}'")
            continue

        entry[rule.field] = rule.pattern.sub(rule.replacement, value, count=1)

    return entry

"""
Run the filter decision then the transformations

@param entry: ChannelEntry Finished entry from the parser
@param model: CompiledModel Model to evaluate against
@return ChannelEntry|None: The transformed entry, or None when filtered out
"""
def process_entry(entry: ChannelEntry, model: CompiledModel) -> Optional[ChannelEntry]:

    # check if it needs to be filtered
    if not is_valid(entry, model):
        return None

    return apply_transformations(entry, model)
