# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""Shared utilities: configuration, logging, models, caching and helpers."""
