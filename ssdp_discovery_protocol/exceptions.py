#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Exceptions defined by this package"""

from __future__ import annotations

from typing import Any

class SsdpError(Exception):
  """Base class for all error exceptions defined by this package."""
  pass

class ConfigurationError(SsdpError):
  """Raised when an option or parameter cannot be applied. No network activity has taken place."""
  pass

class InvalidParameterValueError(ConfigurationError):
  """Raised when a caller-supplied parameter has a value that cannot be used."""
  parameter: str
  value: Any

  def __init__(self, parameter: str, value: Any):
    super().__init__(f"Value '{value}' invalid for parameter {parameter}")
    self.parameter = parameter
    self.value = value

class UnsupportedVersionError(SsdpError):
  """Raised when an operation requires a newer UPnP specification version than the one requested."""
  spec_version: Any

  def __init__(self, spec_version: Any, msg: str | None = None):
    if msg is None:
      msg = f"Operation not supported by UPnP version {spec_version}"
    super().__init__(msg)
    self.spec_version = spec_version

class HttpuFormatError(SsdpError):
  """Raised when a received datagram cannot be parsed into a statement line and headers."""
  pass
