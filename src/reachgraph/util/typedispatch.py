"""Type-based dispatch.

A `TypeDispatcher` subclass declares one handler per argument type with
`@dispatch(T, ...)` and a fallback with `@defaultdispatch`. Calling the
instance selects the handler by the type of the first argument, walking the
MRO for subclasses, and caches the choice per concrete type.
"""

__all__ = [
    "TypeDispatcher",
    "defaultdispatch",
    "dispatch",
    "TypeDispatchError",
    "TypeDispatchDeclarationError",
]

import inspect


class TypeDispatchError(Exception):
    """No handler (not even a default) accepts the argument."""
    pass


class TypeDispatchDeclarationError(Exception):
    """A dispatcher class declares its handlers inconsistently."""
    pass


def _flatten(types, result):
    for t in types:
        if isinstance(t, (list, tuple)):
            _flatten(t, result)
        elif isinstance(t, type):
            result.append(t)
        else:
            raise TypeDispatchDeclarationError("Expected a type, got %r instead." % (t,))
    return result


def _mark(f, types):
    def wrapper(*args, **kargs):
        return f(*args, **kargs)

    wrapper.__original__ = f
    wrapper.__dispatch__ = types
    return wrapper


def dispatch(*types):
    """Register the decorated method for each of `types`."""
    handled = _flatten(types, [])
    return lambda f: _mark(f, handled)


def defaultdispatch(f):
    """Register the decorated method as the fallback handler."""
    return _mark(f, (None,))


def _call(self, p, *args):
    t = type(p)
    table = self.__typeDispatchTable__
    func = table.get(t)

    if func is None:
        for supercls in t.mro():
            func = table.get(supercls)
            if func is not None:
                break
        else:
            func = table.get(None)
        table[t] = func

    return func(self, p, *args)


def _raise(self, node, *args):
    raise TypeDispatchError("%r cannot handle %r\n%r" % (type(self), type(node), node))


class typedispatcher(type):
    """Metaclass collecting the ``@dispatch`` handlers into a lookup table."""

    def __new__(mcls, name, bases, d):
        lut = {}
        unwrapped = {}

        for key, value in d.items():
            if hasattr(value, "__dispatch__") and hasattr(value, "__original__"):
                for t in value.__dispatch__:
                    if t in lut:
                        label = "default" if t is None else t.__name__
                        raise TypeDispatchDeclarationError(
                            "%s has declared multiple handlers for type %s" % (name, label)
                        )
                    lut[t] = value.__original__
                unwrapped[key] = value.__original__

        d.update(unwrapped)

        # Inherit handlers the class does not redefine.
        for base in bases:
            for ancestor in inspect.getmro(base):
                for t, func in getattr(ancestor, "__typeDispatchTable__", {}).items():
                    lut.setdefault(t, func)

        if None not in lut:
            raise TypeDispatchDeclarationError("%s has no default dispatch" % (name,))

        d["__typeDispatchTable__"] = lut
        return type.__new__(mcls, name, bases, d)


class TypeDispatcher(object, metaclass=typedispatcher):
    __call__ = _call
    exceptionDefault = defaultdispatch(_raise)
