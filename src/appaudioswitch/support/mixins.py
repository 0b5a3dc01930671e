def quote(val):
    return "'" + str(val) + "'" if val is not None else "None"


class StringerMixin:

    def __repr__(self):
        """
        outputs the class name and the object dictionary in key sorted order
        """
        return type(self).__name__ + self._sorted_items_string()

    def _sorted_items_string(self):
        return "{" + ", ".join(["'" + str(key) + "': " + quote(val)
                                for key, val in sorted(self.__dict__.items())]) + "}"


class CommonEqualityMixin(object):
    """ equality by type and attribute values, for value objects and events. """

    def __eq__(self, other):
        return isinstance(other, self.__class__) and self.__dict__ == other.__dict__

    def __ne__(self, other):
        return not self.__eq__(other)

    __hash__ = None
