"""
Apple PackBits run-length codec.

PackBits uses a single control byte ``c`` to describe the bytes that follow:

- ``0 <= c <= 127``: copy the next ``c + 1`` bytes literally
- ``129 <= c <= 255``: repeat the next byte ``257 - c`` times
- ``c == 128``: no-op

Scanlines in PSD channel data are encoded independently, so :py:func:`decode`
works on one scanline at a time and always produces exactly ``size`` bytes.

Example::

    from psdparse.compression import rle

    data, complete = rle.decode(b'\\xfd\\x01\\x02\\x02\\x03\\x04', 6)
    assert data == b'\\x01\\x01\\x01\\x01\\x03\\x04'
    assert complete
"""


def decode(data: bytes, size: int) -> tuple[bytes, bool]:
    """decode(data, size) -> (bytes, complete)

    Apple PackBits RLE decoder.

    Decoding stops once ``size`` bytes have been produced; surplus input is
    ignored. When the input runs out early the rest of the output is
    zero-filled and ``complete`` is ``False``.
    """

    i, j = 0, 0
    length = len(data)
    result = bytearray(size)

    while j < size and i < length:
        i, bit = i + 1, data[i]
        if bit < 128:
            count = bit + 1
            chunk = data[i : i + min(count, size - j)]
            result[j : j + len(chunk)] = chunk
            j += len(chunk)
            i += count
        elif bit > 128:
            if i >= length:
                break
            count = min(257 - bit, size - j)
            result[j : j + count] = data[i : i + 1] * count
            j += count
            i += 1

    return bytes(result), j == size


def encode(data: bytes) -> bytes:
    """encode(data) -> bytes

    Apple PackBits RLE encoder.
    """

    MAX_LEN = 0xFF >> 1
    length = len(data)
    i = 0
    j = 0
    result = bytearray()

    if length == 0:
        return bytes(data)
    if length == 1:
        result.extend((0, data[0]))
        return bytes(result)

    while i < length:
        if j + 1 < length and data[j] == data[j + 1]:
            while j < length:
                if j - i >= MAX_LEN:
                    break
                if j + 1 >= length or data[j] != data[j + 1]:
                    break
                j += 1
            result.extend((256 - (j - i), data[i]))
            i = j = j + 1
        else:
            while j < length:
                if j - i >= MAX_LEN:
                    break
                # Repeats of two save nothing, keep them in the literal run.
                elif (
                    ((j + 2 == length) or (MAX_LEN - (j - i) <= 2))
                    and not (j + 1 == length)
                    and (data[j] == data[j + 1])
                ):
                    break
                elif j + 2 < length and (data[j] == data[j + 1] == data[j + 2]):
                    break
                j += 1
            result.append(j - i - 1)
            result.extend(data[i:j])
            i = j
    return bytes(result)
