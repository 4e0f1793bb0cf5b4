"""Tests for analysis/java_backend.py - resolution over indexed Java sources."""

import pytest

from method_insight.src.method_insight.analysis.call_graph_builder import CallGraphBuilder
from method_insight.src.method_insight.analysis.java_backend import JavaReferenceIndex, JavaSourceModel
from method_insight.src.method_insight.analysis.test_matcher import TestMatcher
from method_insight.src.method_insight.indexer import JavaIndexer
from method_insight.src.method_insight.models.call_graph import MethodIdentity
from method_insight.src.method_insight.models.test_models import MatchKind

SERVICE = r"""
package com.acme.shop;

import com.acme.shop.util.Strings;

public class CartService extends BaseService {
    private final CartRepository repository = new CartRepository();
    private final Pricing pricing;

    public CartService(Pricing pricing) {
        this.pricing = pricing;
    }

    public Cart checkout(String customer) {
        String key = Strings.normalize(customer);
        Cart cart = repository.load(key);
        cart.total(pricing.price(cart));
        this.repository.store(cart);
        audit("checkout");
        return cart;
    }

    public Cart checkout(String customer, boolean express) {
        return checkout(customer);
    }

    public void recurse(int n) {
        if (n > 0) { recurse(n - 1); }
        System.out.println(n);
    }

    class Inner {
        void touch() { checkout("inner"); }
    }
}

class BaseService {
    protected void audit(String event) { }
}

class CartRepository {
    public Cart load(String key) { return new Cart(key); }
    public void store(Cart cart) { }
}

class Pricing {
    public long price(Cart cart) { return 1L; }
}

class Cart {
    Cart(String key) { }
    void total(long amount) { }
}
"""

STRINGS = r"""
package com.acme.shop.util;

public final class Strings {
    public static String normalize(String s) { return s.trim(); }
}
"""

GENERATED = r"""
package com.acme.shop;

class Generated {
    static void hook() { }
}
"""

TESTS = r"""
package com.acme.shop;

import org.junit.jupiter.api.DisplayName;
import org.junit.jupiter.api.Test;

class CartServiceTest {
    private CartService service = new CartService(new Pricing());

    @Test
    @DisplayName("checks out a cart")
    void checkout_loadsCart() {
        service.checkout("ada");
    }

    @org.junit.Test
    public void repository_loads() {
        new CartRepository().load("x");
        CartRepository repo = new CartRepository();
        repo.load("y");
    }

    void helper() {
        service.checkout("helper");
    }
}
"""

TESTNG_TESTS = r"""
package com.acme.shop;

import org.testng.annotations.*;

public class StringsTest {
    @Test(groups = "slow")
    public void strings_normalize() {
        com.acme.shop.util.Strings.normalize(" x ");
    }
}
"""


@pytest.fixture
def indexer():
    idx = JavaIndexer()
    idx.index_source(SERVICE, "src/main/java/com/acme/shop/CartService.java")
    idx.index_source(STRINGS, "src/main/java/com/acme/shop/util/Strings.java")
    idx.index_source(GENERATED, "build/generated/com/acme/shop/Generated.java")
    idx.index_source(TESTS, "src/test/java/com/acme/shop/CartServiceTest.java")
    idx.index_source(TESTNG_TESTS, "src/test/java/com/acme/shop/StringsTest.java")
    return idx


@pytest.fixture
def model(indexer):
    return JavaSourceModel(indexer)


CHECKOUT = MethodIdentity("com.acme.shop.CartService", "checkout", "(String)")


def targets(model, method):
    return [model.resolve_call_target(cs) for cs in model.call_sites(method)]


class TestResolve:
    @pytest.mark.parametrize("ref", [
        "CartService.checkout",
        "com.acme.shop.CartService.checkout",
        "com.acme.shop.CartService#checkout",
        "CartService.checkout(String)",
        "CartService.checkout( String )",
    ])
    def test_text_references(self, model, ref):
        assert model.resolve(ref) == CHECKOUT

    def test_signature_selects_overload(self, model):
        resolved = model.resolve("CartService.checkout(String, boolean)")
        assert resolved.signature == "(String, boolean)"

    def test_identity_reference(self, model):
        assert model.resolve(CHECKOUT) == CHECKOUT
        assert model.resolve(MethodIdentity("com.acme.shop.CartService", "missing", "()")) is None

    @pytest.mark.parametrize("ref", ["Nope.checkout", "CartService.nope", "not a reference"])
    def test_unknown(self, model, ref):
        assert model.resolve(ref) is None


class TestResolveCallTarget:
    def test_receivers_of_all_kinds(self, model):
        assert targets(model, CHECKOUT) == [
            MethodIdentity("com.acme.shop.util.Strings", "normalize", "(String)"),  # imported type
            MethodIdentity("com.acme.shop.CartRepository", "load", "(String)"),  # field
            MethodIdentity("com.acme.shop.Cart", "total", "(long)"),  # local variable
            MethodIdentity("com.acme.shop.Pricing", "price", "(Cart)"),  # field from constructor
            MethodIdentity("com.acme.shop.CartRepository", "store", "(Cart)"),  # this.field
            MethodIdentity("com.acme.shop.BaseService", "audit", "(String)"),  # inherited
        ]

    def test_overload_by_argument_count(self, model):
        express = MethodIdentity("com.acme.shop.CartService", "checkout", "(String, boolean)")
        assert targets(model, express) == [CHECKOUT]

    def test_library_calls_do_not_resolve(self, model):
        recurse = MethodIdentity("com.acme.shop.CartService", "recurse", "(int)")
        assert targets(model, recurse) == [recurse, None]

    def test_outer_class_method_from_inner(self, model):
        touch = MethodIdentity("com.acme.shop.CartService.Inner", "touch", "()")
        assert targets(model, touch) == [CHECKOUT]

    def test_constructor(self, model):
        load = MethodIdentity("com.acme.shop.CartRepository", "load", "(String)")
        assert targets(model, load) == [MethodIdentity("com.acme.shop.Cart", "Cart", "(String)")]

    def test_analyzable_content(self, model):
        assert model.is_analyzable_content(CHECKOUT)
        assert not model.is_analyzable_content(MethodIdentity("com.acme.shop.Generated", "hook", "()"))
        assert not model.is_analyzable_content(MethodIdentity("java.lang.String", "trim", "()"))


class TestPackageNamedLikeExcludedRoot:
    SERVICE = r"""
    package com.acme;

    import com.acme.build.Assembler;

    class Service {
        private final Assembler assembler = new Assembler();

        void handle() { assembler.assemble(); }
    }
    """

    ASSEMBLER = r"""
    package com.acme.build;

    public class Assembler {
        public void assemble() { }
    }
    """

    @pytest.fixture
    def build_model(self):
        idx = JavaIndexer()
        idx.index_source(self.SERVICE, "src/main/java/com/acme/Service.java")
        idx.index_source(self.ASSEMBLER, "src/main/java/com/acme/build/Assembler.java")
        return JavaSourceModel(idx)

    def test_call_into_build_package_is_kept(self, build_model):
        assemble = MethodIdentity("com.acme.build.Assembler", "assemble", "()")
        assert build_model.is_analyzable_content(assemble)

        result = CallGraphBuilder(build_model).build("Service.handle")

        assert [e.target for e in result.graph.edges] == [assemble]
        assert [e.call_text for e in result.graph.edges] == ["assemble()"]


class TestJavaReferenceIndex:
    @pytest.fixture
    def index(self, model):
        return JavaReferenceIndex(model)

    def test_references_to(self, index):
        enclosing = {loc.enclosing.method_name for loc in index.references_to(CHECKOUT)}
        assert enclosing == {"checkout", "touch", "checkout_loadsCart", "helper"}

    def test_initializer_reference_has_no_enclosing_method(self, index):
        ctor = MethodIdentity("com.acme.shop.CartService", "CartService", "(Pricing)")
        locations = index.references_to(ctor)
        assert len(locations) == 1
        assert index.enclosing_method(locations[0]) is None

    def test_annotations_are_qualified(self, index):
        test = MethodIdentity("com.acme.shop.CartServiceTest", "checkout_loadsCart", "()")
        names = [a.name for a in index.annotations_of(test)]
        assert names == ["org.junit.jupiter.api.Test", "org.junit.jupiter.api.DisplayName"]

    def test_fully_qualified_annotation(self, index):
        test = MethodIdentity("com.acme.shop.CartServiceTest", "repository_loads", "()")
        assert [a.name for a in index.annotations_of(test)] == ["org.junit.Test"]

    def test_wildcard_import_annotation(self, index):
        test = MethodIdentity("com.acme.shop.StringsTest", "strings_normalize", "()")
        (annotation,) = index.annotations_of(test)
        assert annotation.name == "org.testng.annotations.Test"
        assert annotation.attributes == {"groups": '"slow"'}

    def test_source_and_language(self, index):
        test = MethodIdentity("com.acme.shop.CartServiceTest", "helper", "()")
        assert index.source_text_of(test).startswith("void helper()")
        assert index.language_tag_of(test) == "java"
        assert index.is_test_source(test)
        assert not index.is_test_source(CHECKOUT)

    def test_unknown_method(self, index):
        unknown = MethodIdentity("x.Y", "z", "()")
        assert index.annotations_of(unknown) == []
        assert index.source_text_of(unknown) is None
        assert index.language_tag_of(unknown) is None


class TestEndToEnd:
    def test_graph_and_tests(self, model):
        result = CallGraphBuilder(model).build("CartService.checkout(String)")
        report = TestMatcher(JavaReferenceIndex(model)).find_tests(result.entry, result)

        called = [e.target.method_name for e in result.graph.edges]
        assert called == ["normalize", "load", "Cart", "total", "price", "store", "audit"]
        assert [e.call_text for e in result.graph.edges][:2] == ["normalize(customer)", "load(key)"]

        by_name = {r.method_name: r for r in report.findings}
        assert set(by_name) == {"checkout_loadsCart", "repository_loads", "strings_normalize"}
        assert by_name["checkout_loadsCart"].match_kind is MatchKind.DIRECT
        assert by_name["checkout_loadsCart"].display_name == "checks out a cart"
        assert by_name["repository_loads"].framework == "JUnit 4"
        assert by_name["repository_loads"].match_kind is MatchKind.CLOSURE
        assert by_name["strings_normalize"].framework == "TestNG"
