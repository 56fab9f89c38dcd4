import pygame


def _fill_surface(frame, size: tuple[int, int], sar: float = 1.0) -> pygame.Surface:
    """
    Scale a raw RGB frame to cover *size* (aspect-fill, centre crop).
    """
    surf = pygame.image.frombuffer(frame, frame.shape[1::-1], "RGB")
    sw, sh = size
    vw, vh = surf.get_size()
    scale = max(sw / (vw * sar), sh / vh)
    surf = pygame.transform.scale(surf, (int(vw * scale * sar), int(vh * scale)))
    x = (surf.get_width() - sw) // 2
    y = (surf.get_height() - sh) // 2
    return surf.subsurface(pygame.Rect(x, y, sw, sh))


def render_layers(screen: pygame.Surface, current, incoming, progress: float) -> None:
    """
    Draw the two transition layers from one shared *progress* value:
    the current clip slides up by progress·H and fades out, the incoming
    one rises from the bottom edge (offset (1-progress)·H).
    """
    sw, sh = screen.get_size()
    p = max(0.0, min(1.0, progress))
    screen.fill((0, 0, 0))

    if incoming is not None and p > 0:
        frame = incoming.decode_frame()
        if frame is not None:
            screen.blit(_fill_surface(frame, (sw, sh), incoming.sar),
                        (0, int(sh * (1 - p))))

    if current is not None:
        frame = current.decode_frame()
        if frame is not None:
            layer = _fill_surface(frame, (sw, sh), current.sar).copy()
            layer.set_alpha(int(255 * (1 - p)))
            screen.blit(layer, (0, -int(sh * p)))
