"""Tests for the cloud code registration facade."""

import pytest

from cloudhooks import CloudHooks, HookRegistry
from cloudhooks.triggers import RegistrationError, TriggerKey, TriggerKind


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def registry():
    return HookRegistry()


@pytest.fixture
def cloud(registry):
    return CloudHooks(registry, "A")


class Score:
    class_name = "Score"


def handler(request):
    return None


def other_handler(request):
    return None


def lookup(registry, kind, class_name=None, tenant="A"):
    return registry.lookup(TriggerKey.build(tenant, kind, class_name))


CLASS_METHODS = [
    ("before_save", TriggerKind.BEFORE_SAVE),
    ("after_save", TriggerKind.AFTER_SAVE),
    ("before_delete", TriggerKind.BEFORE_DELETE),
    ("after_delete", TriggerKind.AFTER_DELETE),
    ("before_find", TriggerKind.BEFORE_FIND),
    ("after_find", TriggerKind.AFTER_FIND),
    ("before_subscribe", TriggerKind.BEFORE_SUBSCRIBE),
]

SESSION_METHODS = [
    ("before_login", TriggerKind.BEFORE_LOGIN, "_User"),
    ("after_login", TriggerKind.AFTER_LOGIN, "_User"),
    ("after_logout", TriggerKind.AFTER_LOGOUT, "_Session"),
]

NO_CLASS_METHODS = [
    ("before_save_file", TriggerKind.BEFORE_SAVE_FILE),
    ("after_save_file", TriggerKind.AFTER_SAVE_FILE),
    ("before_delete_file", TriggerKind.BEFORE_DELETE_FILE),
    ("after_delete_file", TriggerKind.AFTER_DELETE_FILE),
    ("before_connect", TriggerKind.BEFORE_CONNECT),
]


# =============================================================================
# Class-scoped triggers
# =============================================================================


class TestClassTriggers:
    @pytest.mark.parametrize("method,kind", CLASS_METHODS)
    def test_string_class(self, cloud, registry, method, kind):
        getattr(cloud, method)("Score", handler)
        assert lookup(registry, kind, "Score").handler is handler

    @pytest.mark.parametrize("method,kind", CLASS_METHODS)
    def test_descriptor_matches_string(self, cloud, registry, method, kind):
        getattr(cloud, method)(Score, handler)
        assert lookup(registry, kind, "Score").handler is handler
        getattr(cloud, method)("Score", other_handler)
        assert lookup(registry, kind, Score).handler is other_handler
        assert len(registry.list_registrations("A")) == 1

    @pytest.mark.parametrize("method,kind", CLASS_METHODS)
    def test_missing_class_raises(self, cloud, method, kind):
        with pytest.raises(RegistrationError):
            getattr(cloud, method)(None, handler)

    def test_handler_in_place_of_class_raises(self, cloud):
        with pytest.raises(RegistrationError):
            cloud.before_save(handler)

    def test_non_callable_handler_raises(self, cloud):
        with pytest.raises(RegistrationError, match="must be callable"):
            cloud.after_save("Score", "not callable")

    def test_returns_handler(self, cloud):
        assert cloud.before_save("Score", handler) is handler

    def test_decorator_form(self, cloud, registry):
        @cloud.before_find("Score")
        def restrict(request):
            return None

        assert restrict.__name__ == "restrict"
        assert lookup(registry, TriggerKind.BEFORE_FIND, "Score").handler is restrict

    def test_decorator_with_bad_class_fails_immediately(self, cloud):
        with pytest.raises(RegistrationError):
            cloud.before_save("")

    def test_validator_stored(self, cloud, registry):
        def check(request):
            return True

        cloud.before_save("Score", handler, validator=check)
        assert lookup(registry, TriggerKind.BEFORE_SAVE, "Score").validator is check

    def test_scoped_to_tenant(self, registry):
        CloudHooks(registry, "A").before_save("Score", handler)
        CloudHooks(registry, "B").before_save("Score", other_handler)
        assert lookup(registry, TriggerKind.BEFORE_SAVE, "Score", "A").handler is handler
        assert (
            lookup(registry, TriggerKind.BEFORE_SAVE, "Score", "B").handler
            is other_handler
        )


# =============================================================================
# Login / logout triggers
# =============================================================================


class TestSessionTriggers:
    @pytest.mark.parametrize("method,kind,default", SESSION_METHODS)
    def test_handler_only_uses_default_class(self, cloud, registry, method, kind, default):
        getattr(cloud, method)(handler)
        assert lookup(registry, kind, default).handler is handler
        assert registry.list_classes_with_handlers("A", kind) == {default}

    @pytest.mark.parametrize("method,kind,default", SESSION_METHODS)
    def test_class_override(self, cloud, registry, method, kind, default):
        getattr(cloud, method)(handler, class_ref="Admin")
        assert lookup(registry, kind, "Admin").handler is handler
        assert lookup(registry, kind, default) is None

    @pytest.mark.parametrize("method,kind,default", SESSION_METHODS)
    def test_positional_class_and_handler(self, cloud, registry, method, kind, default):
        assert getattr(cloud, method)("Admin", handler) is handler
        assert lookup(registry, kind, "Admin").handler is handler
        assert lookup(registry, kind, default) is None

    def test_positional_descriptor(self, cloud, registry):
        cloud.before_login(Score, handler)
        assert lookup(registry, TriggerKind.BEFORE_LOGIN, "Score").handler is handler

    def test_positional_class_decorator(self, cloud, registry):
        @cloud.before_login("Admin")
        def admins_only(request):
            return None

        assert lookup(registry, TriggerKind.BEFORE_LOGIN, "Admin").handler is admins_only

    def test_class_given_twice_raises(self, cloud):
        with pytest.raises(RegistrationError, match="class_ref"):
            cloud.after_login("Admin", handler, class_ref="Other")

    def test_two_handlers_raise(self, cloud):
        with pytest.raises(RegistrationError, match="must name a class"):
            cloud.before_login(handler, other_handler)

    def test_descriptor_override(self, cloud, registry):
        cloud.after_login(handler, class_ref=Score)
        assert lookup(registry, TriggerKind.AFTER_LOGIN, "Score").handler is handler

    def test_bare_decorator(self, cloud, registry):
        @cloud.before_login
        def block_banned(request):
            return None

        assert lookup(registry, TriggerKind.BEFORE_LOGIN, "_User").handler is block_banned

    def test_decorator_with_override(self, cloud, registry):
        @cloud.after_logout(class_ref="_CustomSession")
        def cleanup(request):
            return None

        assert (
            lookup(registry, TriggerKind.AFTER_LOGOUT, "_CustomSession").handler
            is cleanup
        )


# =============================================================================
# File and connection triggers
# =============================================================================


class TestNoClassTriggers:
    @pytest.mark.parametrize("method,kind", NO_CLASS_METHODS)
    def test_registers_without_class(self, cloud, registry, method, kind):
        getattr(cloud, method)(handler)
        assert lookup(registry, kind).handler is handler

    def test_decorator_form(self, cloud, registry):
        @cloud.before_save_file()
        def rename(request):
            return None

        assert lookup(registry, TriggerKind.BEFORE_SAVE_FILE).handler is rename

    def test_live_query_event(self, cloud, registry):
        cloud.on_live_query_event(handler)
        assert registry.lookup_live_query_handler("A") is handler


# =============================================================================
# Functions and jobs
# =============================================================================


class TestFunctionsAndJobs:
    def test_define(self, cloud, registry):
        cloud.define("hello", handler)
        assert registry.lookup_function("A", "hello").handler is handler

    def test_define_with_validator(self, cloud, registry):
        def check(request):
            return True

        cloud.define("hello", handler, validator=check)
        assert registry.lookup_function("A", "hello").validator is check

    def test_define_decorator(self, cloud, registry):
        @cloud.define("averageStars")
        async def average_stars(request):
            return 4.5

        assert registry.lookup_function("A", "averageStars").handler is average_stars

    def test_job(self, cloud, registry):
        cloud.job("cleanup", handler)
        assert registry.lookup_job("A", "cleanup").handler is handler

    def test_job_decorator(self, cloud, registry):
        @cloud.job("cleanup")
        def cleanup(request):
            return None

        assert registry.lookup_job("A", "cleanup").handler is cleanup


# =============================================================================
# Maintenance
# =============================================================================


class TestMaintenance:
    def test_remove_all_hooks_clears_every_tenant(self, registry):
        cloud_a = CloudHooks(registry, "A")
        cloud_b = CloudHooks(registry, "B")
        cloud_a.before_save("Score", handler)
        cloud_b.define("hello", handler)

        cloud_a.remove_all_hooks()

        assert registry.list_tenants() == []

    def test_use_master_key_is_deprecated(self, cloud):
        with pytest.warns(DeprecationWarning, match="deprecated"):
            cloud.use_master_key()
