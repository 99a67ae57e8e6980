# Bundle scaffolding.
#
# This file is never imported. The host bundler parses it, splices the module
# factories in place of the __MODULES__ marker and substitutes the entry key
# for __ENTRY__. Each factory runs a module body and returns its locals().


def __bundle__():
    class __Module__:
        def __repr__(self):
            return '<bundled module>'

    __modules__ = {}
    __cache__ = {}

    def __require__(key):
        if key not in __cache__:
            module = __cache__[key] = __Module__()
            exports = __modules__[key]()
            if '__exports__' in exports:
                __cache__[key] = exports['__exports__']
            else:
                for name, value in exports.items():
                    if not name.startswith('__'):
                        setattr(module, name, value)
        return __cache__[key]

    __MODULES__

    return __require__(__ENTRY__)
