import pytest

from ecservices.intrusive_list import (
    IntrusiveList,
    Node,
    NodeAlreadyInListError,
    NodeContainer,
)


class RegistrationA(NodeContainer):
    def __init__(self):
        self.node = Node()
        self.owner = None

    def get_node(self):
        return self.node

    def init(self, obj):
        self.owner = obj

    def check(self):
        return self.owner is not None and self.owner.a()


class RegistrationB(NodeContainer):
    def __init__(self):
        self.node = Node()
        self.owner = None

    def get_node(self):
        return self.node

    def init(self, obj):
        self.owner = obj

    def check(self):
        return self.owner is not None and self.owner.b()


class ElementA:
    def __init__(self):
        self.reg_a = RegistrationA()

    def a(self):
        return True

    def register(self, lst):
        self.reg_a.init(self)
        lst.push(self.reg_a)


class ElementB:
    def __init__(self):
        self.reg_b = RegistrationB()

    def b(self):
        return True

    def register(self, lst):
        self.reg_b.init(self)
        lst.push(self.reg_b)


class ElementAB:
    def __init__(self):
        self.reg_a = RegistrationA()
        self.reg_b = RegistrationB()

    def a(self):
        return True

    def b(self):
        return True

    def register_a(self, lst):
        self.reg_a.init(self)
        lst.push(self.reg_a)

    def register_b(self, lst):
        self.reg_b.init(self)
        lst.push(self.reg_b)


class RegistrationOnly(NodeContainer):
    def __init__(self):
        self.node = Node()

    def get_node(self):
        return self.node


def _single_instance_type():
    """A container type whose instances all share one node."""

    class RegistrationOnlyOneInstance(NodeContainer):
        _node = Node()

        def get_node(self):
            return type(self)._node

    return RegistrationOnlyOneInstance


def test_node_internal_validity():
    assert Node().data(RegistrationA) is None
    assert Node().data(NodeContainer) is None
    empty = _single_instance_type()()
    assert empty.get_node().data(RegistrationA) is None


def test_list_mixup_checks():
    first_el = RegistrationA()
    second_el = RegistrationA()
    lst = IntrusiveList()

    lst.push(first_el)
    lst.push(second_el)

    with pytest.raises(NodeAlreadyInListError):
        lst.push(first_el)
    with pytest.raises(NodeAlreadyInListError):
        lst.push(second_el)

    simple = RegistrationOnly()
    lst.push(simple)

    lst2 = IntrusiveList()
    with pytest.raises(NodeAlreadyInListError):
        lst2.push(simple)

    single_type = _single_instance_type()
    empty_node = single_type()
    empty_node_unpushable = single_type()
    lst.push(empty_node)

    with pytest.raises(NodeAlreadyInListError):
        lst.push(empty_node)
    with pytest.raises(NodeAlreadyInListError):
        lst2.push(empty_node)
    with pytest.raises(NodeAlreadyInListError):
        lst.push(empty_node_unpushable)
    with pytest.raises(NodeAlreadyInListError):
        lst2.push(empty_node_unpushable)

    assert len(list(lst)) == 4
    assert list(lst2) == []


def test_empty_list():
    assert list(IntrusiveList()) == []


def test_monotype_list():
    list_a = IntrusiveList()
    list_b = IntrusiveList()
    elements_a = [ElementA() for _ in range(5)]
    elements_b = [ElementB() for _ in range(5)]

    for element in elements_a:
        element.register(list_a)
    for element in elements_b:
        element.register(list_b)

    regs_a = [node.data(RegistrationA) for node in list_a]
    regs_b = [node.data(RegistrationB) for node in list_b]
    assert len(regs_a) == 5
    assert len(regs_b) == 5
    assert all(reg is not None and reg.check() for reg in regs_a)
    assert all(reg is not None and reg.check() for reg in regs_b)

    assert all(node.data(RegistrationB) is None for node in list_a)


def test_multitype_list():
    list_a = IntrusiveList()
    elements_a = [ElementA() for _ in range(5)]
    elements_ab = [ElementAB() for _ in range(5)]

    for element in elements_a:
        element.register(list_a)
    for element in elements_ab:
        element.register_a(list_a)

    regs = [node.data(RegistrationA) for node in list_a]
    assert len(regs) == 10
    assert all(reg is not None and reg.check() for reg in regs)


def test_multi_list():
    list_a = IntrusiveList()
    list_b = IntrusiveList()
    elements_a = [ElementA() for _ in range(5)]
    elements_b = [ElementB() for _ in range(5)]
    elements_ab = [ElementAB() for _ in range(5)]

    for element in elements_a:
        element.register(list_a)
    for element in elements_b:
        element.register(list_b)
    for element in elements_ab:
        element.register_a(list_a)
        element.register_b(list_b)

    regs_a = [node.data(RegistrationA) for node in list_a]
    regs_b = [node.data(RegistrationB) for node in list_b]
    assert len(regs_a) == 10
    assert len(regs_b) == 10
    assert all(reg is not None and reg.check() for reg in regs_a)
    assert all(reg is not None and reg.check() for reg in regs_b)


def test_iteration_is_most_recent_first():
    lst = IntrusiveList()
    regs = [RegistrationOnly() for _ in range(4)]
    for reg in regs:
        lst.push(reg)
    assert [node.data(RegistrationOnly) for node in lst] == list(reversed(regs))


def test_data_returns_the_owner():
    lst = IntrusiveList()
    reg = RegistrationA()
    lst.push(reg)
    (node,) = list(lst)
    assert node.data(RegistrationA) is reg
    assert node.data(NodeContainer) is reg