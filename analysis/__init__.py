# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""Analysis module for traffic-stop outcomes.

This module provides loading, filtering, group-wise rate aggregation,
reference-group comparisons and outcome modelling for traffic-stop records.
"""
