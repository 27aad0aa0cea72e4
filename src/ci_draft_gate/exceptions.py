# Licensed to the Apache Software Foundation (ASF) under one
# or more contributor license agreements.  See the NOTICE file
# distributed with this work for additional information
# regarding copyright ownership.  The ASF licenses this file
# to you under the Apache License, Version 2.0 (the
# "License"); you may not use this file except in compliance
# with the License.  You may obtain a copy of the License at
#
#   http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing,
# software distributed under the License is distributed on an
# "AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY
# KIND, either express or implied.  See the License for the
# specific language governing permissions and limitations
# under the License.
"""Exceptions raised while evaluating and gating pull requests."""

from __future__ import annotations


class DraftGateException(Exception):
    """Base class for all errors reported by the draft gate."""


class InputError(DraftGateException):
    """Raised when the invocation context lacks what is needed to evaluate a pull request."""


class FetchError(DraftGateException):
    """Raised when reading from the remote CI directory does not succeed."""


class SchemaError(FetchError):
    """Raised when a listing response lacks the expected array field."""


class MutationError(DraftGateException):
    """Raised when the draft conversion of a pull request is rejected."""


class CommentError(DraftGateException):
    """Raised when posting the explanatory comment is rejected."""
