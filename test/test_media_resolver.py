import anyio
import httpx
import pytest

from services.media_resolver import IDLE, ResolutionState, SignedUrlResolver

pytestmark = pytest.mark.anyio


def _resolver(handler, **kwargs):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="https://site.example")
    return SignedUrlResolver(client=client, **kwargs), client


async def test_absent_reference_settles_without_network():
    calls = []
    resolver, client = _resolver(lambda request: calls.append(request) or httpx.Response(200, json={"url": "x"}))
    async with client:
        assert await resolver.resolve(None) == IDLE
        assert await resolver.resolve("") == IDLE
    assert calls == []


async def test_absolute_url_is_used_directly():
    calls = []
    resolver, client = _resolver(lambda request: calls.append(request) or httpx.Response(500))
    async with client:
        state = await resolver.resolve("https://youtube.com/watch?v=xyz")
    assert state == ResolutionState(url="https://youtube.com/watch?v=xyz", loading=False, error=None)
    assert calls == []


async def test_key_is_resolved_through_download_endpoint_as_json():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"url": "https://signed.example/a.png?sig=1"})

    resolver, client = _resolver(handler)
    async with client:
        state = await resolver.resolve("uploads/books/covers/a.png")

    assert state == ResolutionState(url="https://signed.example/a.png?sig=1")
    assert seen[0].url.path == "/api/download"
    assert seen[0].url.params["key"] == "uploads/books/covers/a.png"
    assert seen[0].url.params["format"] == "json"


async def test_loading_state_is_published_while_fetching():
    states = []
    resolver, client = _resolver(
        lambda request: httpx.Response(200, json={"url": "https://signed.example/a"}),
        on_change=states.append,
    )
    async with client:
        await resolver.resolve("uploads/a.png")
    assert states == [
        ResolutionState(url=None, loading=True),
        ResolutionState(url="https://signed.example/a"),
    ]


async def test_null_url_is_a_placeholder_not_an_error():
    resolver, client = _resolver(lambda request: httpx.Response(200, json={"url": None}))
    async with client:
        state = await resolver.resolve("uploads/a.png")
    assert state == ResolutionState(url=None, loading=False, error=None)


async def test_error_response_sets_error_and_clears_url():
    resolver, client = _resolver(lambda request: httpx.Response(500, json={"error": "boom"}))
    async with client:
        await resolver.resolve("https://cdn.example/a.png")
        state = await resolver.resolve("uploads/a.png")
    assert state.url is None
    assert state.loading is False
    assert "500" in state.error


async def test_network_failure_sets_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    resolver, client = _resolver(handler)
    async with client:
        state = await resolver.resolve("uploads/a.png")
    assert state.url is None
    assert "connection refused" in state.error


async def test_latest_reference_wins_when_older_response_arrives_last():
    release_a = anyio.Event()

    async def handler(request):
        key = request.url.params["key"]
        if key == "uploads/a.png":
            await release_a.wait()
        return httpx.Response(200, json={"url": f"https://signed.example/{key}"})

    resolver, client = _resolver(handler)
    async with client:
        results = {}

        async def resolve(reference):
            results[reference] = await resolver.resolve(reference)

        async with anyio.create_task_group() as tg:
            tg.start_soon(resolve, "uploads/a.png")
            await anyio.sleep(0.01)
            tg.start_soon(resolve, "uploads/b.png")
            await anyio.sleep(0.01)
            # B has settled; now let A's stale response come back
            release_a.set()

    assert resolver.state.url == "https://signed.example/uploads/b.png"
    assert resolver.reference == "uploads/b.png"
    assert results["uploads/a.png"].url == "https://signed.example/uploads/b.png"


async def test_switching_to_absolute_url_discards_in_flight_lookup():
    release = anyio.Event()

    async def handler(request):
        await release.wait()
        return httpx.Response(200, json={"url": "https://signed.example/old"})

    resolver, client = _resolver(handler)
    async with client:
        async with anyio.create_task_group() as tg:
            tg.start_soon(resolver.resolve, "uploads/old.png")
            await anyio.sleep(0.01)
            await resolver.resolve("https://cdn.example/new.png")
            release.set()

    assert resolver.state == ResolutionState(url="https://cdn.example/new.png")


async def test_update_skips_unchanged_reference():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={"url": "https://signed.example/a"})

    resolver, client = _resolver(handler)
    async with client:
        await resolver.update("uploads/a.png")
        await resolver.update("uploads/a.png")
        await resolver.update("uploads/b.png")
    assert len(calls) == 2


async def test_close_discards_in_flight_result():
    release = anyio.Event()

    async def handler(request):
        await release.wait()
        return httpx.Response(200, json={"url": "https://signed.example/late"})

    resolver, client = _resolver(handler)
    async with client:
        async with anyio.create_task_group() as tg:
            tg.start_soon(resolver.resolve, "uploads/a.png")
            await anyio.sleep(0.01)
            await resolver.close()
            release.set()

    assert resolver.state.url is None
    with pytest.raises(RuntimeError):
        await resolver.resolve("uploads/b.png")


async def test_upper_case_scheme_is_used_directly():
    calls = []
    resolver, client = _resolver(lambda request: calls.append(request) or httpx.Response(500))
    async with client:
        state = await resolver.resolve("HTTPS://CDN.EXAMPLE/A.PNG")
    assert state.url == "HTTPS://CDN.EXAMPLE/A.PNG"
    assert calls == []
