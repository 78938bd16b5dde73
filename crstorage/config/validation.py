"""
Validation of the loaded library config against the rules held in
config_validation.yaml
"""

# Standard
from typing import Any, Dict, List, Optional, Union
import abc

# First Party
import aconfig
import alog

# Local
from .. import constants
from ..utils import nested_get

log = alog.use_channel("CONFG")


## Public ######################################################################


def get_invalid_params(
    config: aconfig.Config,
    validation_config: aconfig.Config,
) -> List[str]:
    """Get the list of keys in the config whose values break their validation
    rule

    Args:
        config:  aconfig.Config
            The parsed config with any override values
        validation_config:  aconfig.Config
            The parallel config holding the validation rules

    Returns:
        invalid_params:  List[str]
            The dot-delimited keys of every parameter that failed validation
    """
    invalid_params = []
    for val_key, validator in _parse_validation_config(validation_config).items():
        if not validator.validate(nested_get(config, val_key)):
            log.warning("Found invalid config key [%s]", val_key)
            invalid_params.append(val_key)
    return invalid_params


## Parameter Types #############################################################

# Map from the "type" key in the validation file to the parameter class
_PARAMETER_TYPES = {}


def _parameter_type(type_key: str):
    """Decorator registering a parameter class under its validation type key"""

    def decorator(cls):
        cls.TYPE_KEY = type_key
        _PARAMETER_TYPES[type_key] = cls
        return cls

    return decorator


# pylint: disable=too-few-public-methods


class _ValidatedParameter(abc.ABC):
    """A single parameter with type and value validation"""

    TYPES = []
    TYPE_KEY = None

    def __init__(self, optional: bool = False):
        assert self.TYPES, "Must specify at least one valid type"
        self.optional = optional

    def validate(self, value: Any) -> bool:
        """Check the type and then the value of a read config value"""
        if self.optional and value is None:
            return True

        # bool is an int, so it needs to be excluded explicitly for numbers
        if isinstance(value, bool) and bool not in self.TYPES:
            log.warning(
                "Invalid type <%s> for %s parameter", type(value), self.TYPE_KEY
            )
            return False
        if not isinstance(value, tuple(self.TYPES)):
            log.warning(
                "Invalid type <%s> for %s parameter", type(value), self.TYPE_KEY
            )
            return False

        valid_value = self._validate_value(value)
        if not valid_value:
            log.warning("Invalid value [%s] for %s parameter", value, self.TYPE_KEY)
        return valid_value

    @abc.abstractmethod
    def _validate_value(self, value: Any) -> bool:
        """Type-specific value validation"""


@_parameter_type("number")
class _NumberParameter(_ValidatedParameter):
    """A numeric parameter with optional inclusive bounds

    NOTE: The builtin min/max names are used so the rules read naturally in
        the yaml file
    """

    TYPES = [int, float]

    def __init__(
        self,
        *,
        min: Optional[Union[int, float]] = None,  # pylint: disable=redefined-builtin
        max: Optional[Union[int, float]] = None,  # pylint: disable=redefined-builtin
        **kwargs,
    ):
        super().__init__(**kwargs)
        self._min = min
        self._max = max

    def _validate_value(self, value: Union[int, float]) -> bool:
        return (self._min is None or value >= self._min) and (
            self._max is None or value <= self._max
        )


@_parameter_type("int")
class _IntParameter(_NumberParameter):
    TYPES = [int]


@_parameter_type("str")
class _StrParameter(_ValidatedParameter):
    """A string parameter with optional inclusive length bounds"""

    TYPES = [str]

    def __init__(
        self,
        *,
        min_len: Optional[int] = None,
        max_len: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self._min_len = min_len
        self._max_len = max_len

    def _validate_value(self, value: str) -> bool:
        return (self._min_len is None or len(value) >= self._min_len) and (
            self._max_len is None or len(value) <= self._max_len
        )


@_parameter_type("bool")
class _BoolParameter(_ValidatedParameter):
    TYPES = [bool]

    def _validate_value(self, value: bool) -> bool:
        return True


@_parameter_type("enum")
class _EnumParameter(_ValidatedParameter):
    """A parameter restricted to a fixed set of str or int values"""

    TYPES = [str, int, type(None)]

    def __init__(self, *, values: List[Union[str, int, None]], **kwargs):
        super().__init__(**kwargs)
        assert (
            isinstance(values, list) and values
        ), "Must specify at least one enum value!"
        self.values = values

    def _validate_value(self, value: Union[str, int, None]) -> bool:
        return value in self.values


# pylint: enable=too-few-public-methods

## Parsing #####################################################################


def _construct_parameter(param_args: Dict[str, Any]) -> Optional[_ValidatedParameter]:
    """Build the parameter for a rule dict, or None if the type is unknown"""
    param_args = dict(param_args)
    param_type = param_args.pop("type")
    param_class = _PARAMETER_TYPES.get(param_type)
    if param_class is None:
        return None
    return param_class(**param_args)


def _parse_validation_config(
    validation_config: aconfig.Config,
    prefix_parts: Optional[List[str]] = None,
) -> Dict[str, _ValidatedParameter]:
    """Flatten the validation config into nested keys pointing at parameters"""
    output_dict = {}
    prefix_parts = prefix_parts or []
    for key, val in validation_config.items():
        if not isinstance(val, dict):
            continue
        key_parts = prefix_parts + [key]
        nested_key = constants.NESTED_DICT_DELIM.join(key_parts)

        param = None
        if "type" in val:
            log.debug3("Attempting to construct parameter at [%s]: %s", nested_key, val)
            param = _construct_parameter(val)

        if param:
            output_dict[nested_key] = param
        else:
            log.debug3("Recursing into %s", nested_key)
            output_dict.update(_parse_validation_config(val, prefix_parts=key_parts))
    return output_dict
