"""Tests for the contact import service."""

import httpx
import pytest
from uuid import uuid4

from app.config import Settings
from app.models.contact import TagCategory
from app.services.contact_import import (
    ContactImportError,
    ContactImportService,
    EmptyImportError,
    ImportResult,
    UnsupportedFileTypeError,
    UploadTooLargeError,
    get_contact_import_service,
)
from app.services.contact_record import ContactRecord, TagRecord
from app.services.contact_store import ContactNotFoundError, SqlContactStore
from app.services.facebook_client import FacebookAuthError, FacebookError, FacebookGraphClient


SINGLE_EXPORT = (
    "Name,Email,Company\n"
    "Jane Doe,jane@acme.com,Acme Corp\n"
)

CONNECTIONS_EXPORT = (
    "Notes:\n"
    '"When exporting your connection data, you may notice that some of the email addresses are missing."\n'
    "\n"
    "First Name,Last Name,URL,Email Address,Company,Position,Connected On\n"
    "Jane,Doe,https://www.linkedin.com/in/janedoe,,,,01 Jan 2024\n"
    "John,Smith,https://www.linkedin.com/in/jsmith,,Initech,Manager,15 Mar 2023\n"
)

CONTACTS_EXPORT = (
    "Source,FirstName,LastName,Companies,Title,Emails,PhoneNumbers\n"
    "LinkedIn,Jane,Doe,Acme Corp,Engineer,jane@acme.com,555-0100\n"
)


class FakeFacebookClient:
    """Stands in for FacebookGraphClient with canned documents."""

    def __init__(self, profiles, friends=None, failing=(), friends_error=None):
        self.profiles = profiles
        self.friends = friends or []
        self.failing = set(failing)
        self.friends_error = friends_error

    async def get_profile(self, user_id="me"):
        if user_id in self.failing:
            raise FacebookError(f"Facebook Graph API error: 500 for {user_id}")
        return self.profiles[user_id]

    async def get_friends(self, max_friends=500):
        if self.friends_error:
            raise self.friends_error
        return self.friends[:max_friends]


@pytest.fixture
def settings():
    return Settings(db_url="sqlite://", max_upload_bytes=1024)


@pytest.fixture
def service(memory_store, settings):
    return ContactImportService(memory_store, settings)


class TestValidateUpload:
    """Tests for upload validation."""

    def test_accepts_csv(self, service):
        service.validate_upload("Connections.CSV", 100)

    @pytest.mark.parametrize("filename", ["contacts.xlsx", "", None])
    def test_rejects_non_csv(self, service, filename):
        with pytest.raises(UnsupportedFileTypeError):
            service.validate_upload(filename, 10)

    def test_rejects_oversized(self, service):
        with pytest.raises(UploadTooLargeError):
            service.validate_upload("Connections.csv", 1025)


class TestImportLinkedIn:
    """Tests for LinkedIn CSV imports."""

    def test_get_contact_import_service(self, memory_store, settings):
        assert isinstance(get_contact_import_service(memory_store, settings), ContactImportService)

    def test_single_file_import(self, service, memory_store):
        """Test one row with a company yields company and source tags."""
        result = service.import_linkedin([("linkedin", SINGLE_EXPORT.encode("utf-8"))])

        assert isinstance(result, ImportResult)
        assert result.success is True
        assert result.count == 1
        assert result.enhanced == 0
        assert result.processed == 1
        assert result.total_contacts == 1

        contact = memory_store.find_by_key("jane doe")
        assert contact.name == "Jane Doe"
        assert contact.email == "jane@acme.com"
        assert contact.company == "Acme Corp"
        assert contact.source == "linkedin"
        assert contact.tags == [
            TagRecord("Acme Corp", TagCategory.company, "linkedin"),
            TagRecord("LinkedIn", TagCategory.source, "linkedin"),
        ]

    def test_first_and_last_name_export(self, service, memory_store):
        content = "First Name,Last Name,Company,Position,Email Address\nJane,Doe,Acme Corp,Engineer,jane@acme.com\n"

        service.import_linkedin([("linkedin", content)])

        jane = memory_store.find_by_key("jane doe")
        assert jane.name == "Jane Doe"
        assert jane.company == "Acme Corp"
        assert jane.position == "Engineer"
        assert jane.email == "jane@acme.com"
        assert [(t.name, t.category) for t in jane.tags] == [
            ("Acme Corp", TagCategory.company),
            ("LinkedIn", TagCategory.source),
        ]

    def test_connections_and_contacts_merge(self, service, memory_store):
        """Test the same person in both exports becomes one combined contact."""
        result = service.import_linkedin([
            ("contacts", CONTACTS_EXPORT),
            ("connections", CONNECTIONS_EXPORT),
        ])

        assert result.count == 2
        assert result.processed == 2
        assert memory_store.count() == 2

        jane = memory_store.find_by_key("jane doe")
        assert jane.connected_on == "01 Jan 2024"
        assert jane.email == "jane@acme.com"
        assert jane.company == "Acme Corp"
        assert jane.position == "Engineer"
        assert jane.phone == "555-0100"
        assert jane.profile_url == "https://www.linkedin.com/in/janedoe"
        assert jane.source == "connections+contacts"

    def test_reimport_enhances_existing(self, service, memory_store):
        service.import_linkedin([("connections", CONNECTIONS_EXPORT)])
        result = service.import_linkedin([("contacts", CONTACTS_EXPORT)])

        assert result.count == 0
        assert result.enhanced == 1
        assert result.total_contacts == 2
        assert "enhanced 1 existing" in result.message

        jane = memory_store.find_by_key("jane doe")
        assert jane.email == "jane@acme.com"
        assert jane.connected_on == "01 Jan 2024"
        assert TagRecord("Acme Corp", TagCategory.company, "linkedin") in jane.tags

    def test_existing_values_are_not_overwritten(self, service, memory_store):
        memory_store.upsert(ContactRecord(name="Jane Doe", company="Old Co", source="manual"))

        service.import_linkedin([("linkedin", SINGLE_EXPORT)])

        jane = memory_store.find_by_key("jane doe")
        assert jane.company == "Old Co"
        assert jane.email == "jane@acme.com"
        assert jane.source == "manual+linkedin"

    def test_rows_without_name_are_skipped(self, service, memory_store):
        content = "First Name,Last Name,Company\nJane,Doe,Acme\n,,Nameless Inc\n"
        result = service.import_linkedin([("linkedin", content)])

        assert result.count == 1
        assert result.skipped == 1
        assert "1 skipped" in result.message

    def test_header_only_file(self, service):
        with pytest.raises(EmptyImportError):
            service.import_linkedin([("linkedin", "First Name,Last Name\n")])

    def test_empty_file(self, service):
        with pytest.raises(EmptyImportError):
            service.import_linkedin([("linkedin", b"")])

    def test_import_is_idempotent(self, service, memory_store):
        service.import_linkedin([("linkedin", SINGLE_EXPORT)])
        first = memory_store.find_by_key("jane doe")

        result = service.import_linkedin([("linkedin", SINGLE_EXPORT)])
        second = memory_store.find_by_key("jane doe")

        assert result.count == 0
        assert result.enhanced == 0
        assert result.message == "No new contacts imported."
        assert memory_store.count() == 1
        assert second.tags == first.tags
        assert second.source == first.source


class TestImportProfiles:
    """Tests for profile document imports."""

    def test_facebook_documents(self, service, memory_store):
        documents = [
            {
                "id": "1",
                "name": "John Smith",
                "work": [{"employer": {"name": "Initech"}, "position": {"name": "Manager"}}],
                "location": {"name": "Seattle, Washington"},
                "education": [{"school": {"name": "State University"}}],
            },
            {"id": "2"},
        ]

        result = service.import_profiles(documents)

        assert result.count == 1
        assert result.skipped == 1
        john = memory_store.find_by_key("john smith")
        assert john.source == "facebook"
        assert [(t.name, t.category) for t in john.tags] == [
            ("Initech", TagCategory.company),
            ("Seattle, Washington", TagCategory.location),
            ("State University", TagCategory.education),
            ("Facebook", TagCategory.source),
        ]

    def test_facebook_merges_with_linkedin(self, service, memory_store):
        service.import_linkedin([("linkedin", SINGLE_EXPORT)])

        service.import_profiles([{"name": "Jane Doe", "location": {"name": "Austin, Texas"}}])

        jane = memory_store.find_by_key("jane doe")
        assert jane.location == "Austin, Texas"
        assert jane.source == "linkedin+facebook"
        source_tags = [t.name for t in jane.tags if t.category == TagCategory.source]
        assert source_tags == ["LinkedIn", "Facebook"]


class TestImportFacebook:
    """Tests for Graph API imports."""

    @pytest.mark.asyncio
    async def test_profile_and_friends(self, service, memory_store):
        client = FakeFacebookClient(
            profiles={
                "me": {"id": "1", "name": "Jane Doe"},
                "2": {"id": "2", "name": "John Smith"},
            },
            friends=[{"id": "2", "name": "John Smith"}],
        )

        result = await service.import_facebook("token", client=client)

        assert result.count == 2
        assert memory_store.count() == 2

    @pytest.mark.asyncio
    async def test_failed_friend_is_skipped(self, service, memory_store):
        client = FakeFacebookClient(
            profiles={"me": {"id": "1", "name": "Jane Doe"}},
            friends=[{"id": "2"}, {"name": "No Id"}],
            failing={"2"},
        )

        result = await service.import_facebook("token", client=client)

        assert result.success is True
        assert result.count == 1
        assert result.skipped == 2

    @pytest.mark.asyncio
    async def test_friends_failure_keeps_profile(self, service, memory_store):
        client = FakeFacebookClient(
            profiles={"me": {"id": "1", "name": "Jane Doe"}},
            friends_error=FacebookAuthError("Facebook rejected the access token"),
        )

        result = await service.import_facebook("token", client=client)

        assert result.count == 1
        assert result.skipped == 1
        assert any("Friends skipped" in note for note in result.details)

    @pytest.mark.asyncio
    async def test_without_friends(self, service):
        client = FakeFacebookClient(profiles={"me": {"id": "1", "name": "Jane Doe"}}, friends_error=AssertionError())

        result = await service.import_facebook("token", include_friends=False, client=client)

        assert result.count == 1


class TestManualContactsAndTags:
    """Tests for manual entry and tag editing."""

    def test_create_contact(self, service):
        record = service.create_contact({"name": "Sam Rivera", "company": "Globex"})
        assert record.id is not None
        assert record.source == "manual"
        assert TagRecord("Manual", TagCategory.source, "manual") in record.tags

    def test_create_contact_merges_by_name(self, service, memory_store):
        service.import_linkedin([("linkedin", SINGLE_EXPORT)])

        record = service.create_contact({"name": "jane doe", "phone": "555-0100", "company": "Other"})

        assert memory_store.count() == 1
        assert record.name == "Jane Doe"
        assert record.phone == "555-0100"
        assert record.company == "Acme Corp"

    def test_create_contact_requires_name(self, service):
        with pytest.raises(ContactImportError):
            service.create_contact({"email": "nobody@example.com"})

    def test_add_and_remove_tag(self, service):
        record = service.create_contact({"name": "Sam Rivera"})

        tagged = service.add_tag(record.id, "Golf", TagCategory.interest)
        again = service.add_tag(record.id, "Golf", TagCategory.interest)
        assert len(again.tags) == len(tagged.tags)
        assert TagRecord("Golf", TagCategory.interest, "manual") in tagged.tags

        untagged = service.remove_tag(record.id, "Golf", TagCategory.interest)
        assert all(t.name != "Golf" for t in untagged.tags)

    def test_tag_unknown_contact(self, service):
        with pytest.raises(ContactNotFoundError):
            service.add_tag(uuid4(), "Golf", TagCategory.interest)


class TestImportWithDatabase:
    """Tests for imports persisted through SqlContactStore."""

    def test_two_file_import_persists_tags(self, db_session, settings):
        store = SqlContactStore(db_session)
        service = ContactImportService(store, settings)

        service.import_linkedin([
            ("connections", CONNECTIONS_EXPORT),
            ("contacts", CONTACTS_EXPORT),
        ])

        jane = store.find_by_key("jane doe")
        assert jane.source == "connections+contacts"
        assert jane.email == "jane@acme.com"
        assert [(t.name, t.category) for t in jane.tags] == [
            ("Acme Corp", TagCategory.company),
            ("LinkedIn", TagCategory.source),
        ]


class TestImportFacebookPaging:
    """Tests for Graph API imports spanning several friend pages."""

    @pytest.mark.asyncio
    async def test_all_friend_pages_imported(self, service, memory_store):
        names = {"me": "Jane Doe", "1": "Al Baker", "2": "Bea Cole", "3": "Cy Dunn"}

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.params.get("access_token") != "tok":
                return httpx.Response(401, json={"error": {}})
            path = request.url.path.rsplit("/", 1)[-1]
            if path == "friends":
                if request.url.params.get("after") == "page-2":
                    return httpx.Response(200, json={"data": [{"id": "3"}]})
                return httpx.Response(200, json={
                    "data": [{"id": "1"}, {"id": "2"}],
                    "paging": {"next": "https://graph.test/v18.0/me/friends?access_token=tok&after=page-2"},
                })
            return httpx.Response(200, json={"id": path, "name": names[path]})

        client = FacebookGraphClient(
            "tok",
            base_url="https://graph.test/v18.0",
            transport=httpx.MockTransport(handler),
        )

        result = await service.import_facebook("tok", client=client)

        assert result.count == 4
        assert result.skipped == 0
        assert result.details == []
        assert memory_store.count() == 4
