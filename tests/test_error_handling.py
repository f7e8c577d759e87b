import asyncio
import pytest
import aiohttp
from unittest.mock import MagicMock, AsyncMock
from subnetdash.utils.api_client import APIClient
from subnetdash.utils.errors import NetworkError, ApiResponseError

@pytest.mark.asyncio
async def test_api_timeout():
    # Mock session and get to raise timeout
    mock_session = MagicMock()
    mock_get = MagicMock()
    mock_get.__aenter__.side_effect = aiohttp.ServerTimeoutError("Timeout")
    mock_session.get.return_value = mock_get

    client = APIClient(mock_session)

    with pytest.raises(NetworkError) as exc:
        await client.get_json("http://test.com/timeout")
    assert "Timeout" in str(exc.value)
    assert exc.value.url == "http://test.com/timeout"

@pytest.mark.asyncio
async def test_api_bad_json():
    # Mock response with 200 OK but bad JSON
    mock_response = AsyncMock()
    mock_response.status = 200
    mock_response.json.side_effect = ValueError("Bad JSON")
    mock_response.text.return_value = "<html>Not JSON</html>"

    mock_session = MagicMock()
    mock_get = MagicMock()
    mock_get.__aenter__.return_value = mock_response
    mock_session.get.return_value = mock_get

    client = APIClient(mock_session)

    with pytest.raises(ApiResponseError) as exc:
        await client.get_json("http://test.com/bad-json")

    assert "Invalid JSON" in str(exc.value)
    assert exc.value.status_code == 200
    assert "<html>" in exc.value.body

@pytest.mark.asyncio
async def test_api_404():
    mock_response = AsyncMock()
    mock_response.status = 404
    mock_response.text.return_value = "Not Found"

    mock_session = MagicMock()
    mock_get = MagicMock()
    mock_get.__aenter__.return_value = mock_response
    mock_session.get.return_value = mock_get

    client = APIClient(mock_session)

    with pytest.raises(ApiResponseError) as exc:
        await client.get_json("http://test.com/404")

    assert exc.value.status_code == 404
    assert "Not Found" in str(exc.value)

@pytest.mark.asyncio
async def test_api_500():
    mock_response = AsyncMock()
    mock_response.status = 500
    mock_response.text.return_value = "Internal Server Error"

    mock_session = MagicMock()
    mock_get = MagicMock()
    mock_get.__aenter__.return_value = mock_response
    mock_session.get.return_value = mock_get

    client = APIClient(mock_session)

    with pytest.raises(ApiResponseError) as exc:
        await client.get_json("http://test.com/500")

    assert exc.value.status_code == 500
    assert "Internal Server Error" in str(exc.value)

@pytest.mark.asyncio
async def test_api_ok_returns_payload():
    mock_response = AsyncMock()
    mock_response.status = 200
    mock_response.json.return_value = {"columns": ["UID"], "rows": [[1]]}

    mock_session = MagicMock()
    mock_get = MagicMock()
    mock_get.__aenter__.return_value = mock_response
    mock_session.get.return_value = mock_get

    client = APIClient(mock_session)

    data = await client.get_json("http://test.com/summary")
    assert data == {"columns": ["UID"], "rows": [[1]]}

@pytest.mark.asyncio
async def test_api_client_timeout_maps_to_network_error():
    # ClientTimeout expiry surfaces as asyncio.TimeoutError, not a ClientError
    mock_session = MagicMock()
    mock_get = MagicMock()
    mock_get.__aenter__.side_effect = asyncio.TimeoutError()
    mock_session.get.return_value = mock_get

    client = APIClient(mock_session)

    with pytest.raises(NetworkError) as exc:
        await client.get_json("http://test.com/slow")
    assert "Timeout" in str(exc.value)
    assert isinstance(exc.value.original_error, asyncio.TimeoutError)
