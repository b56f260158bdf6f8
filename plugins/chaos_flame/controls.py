"""
UI Controls for the Flame Viewer

Dark-themed widgets drawn directly with pygame: sliders (linear or
logarithmic), buttons, a preset button row, a variation picker and a
progress bar, stacked top to bottom in a side panel.
"""

import math

import pygame


THEME = {
    "bg": (8, 8, 12),
    "panel": (25, 25, 35),
    "track": (50, 50, 65),
    "track_fill": (220, 120, 60),
    "handle": (200, 210, 230),
    "handle_active": (255, 255, 255),
    "text": (180, 185, 195),
    "text_bright": (230, 235, 245),
    "text_dim": (100, 105, 115),
    "button": (40, 42, 55),
    "button_hover": (55, 58, 75),
    "button_active": (180, 90, 50),
    "divider": (40, 40, 55),
}


class Slider:
    """Horizontal slider with label and value display.

    With log_scale=True the track position maps to log10(value), so a
    range like 1e4..1e10 gets even spacing per decade. `formatter` turns
    the value into display text; `fmt` is used when it is None.
    """

    def __init__(self, x, y, width, label, min_val, max_val, value,
                 fmt=".3f", step=None, on_change=None, log_scale=False,
                 formatter=None):
        if log_scale and min_val <= 0:
            raise ValueError("log-scale slider needs min_val > 0")
        self.x = x
        self.y = y
        self.width = width
        self.height = 36
        self.label = label
        self.min_val = min_val
        self.max_val = max_val
        self.value = value
        self.fmt = fmt
        self.step = step
        self.on_change = on_change
        self.log_scale = log_scale
        self.formatter = formatter
        self.dragging = False
        self.hovered = False

        self.track_y = self.y + 22
        self.track_h = 4
        self.handle_r = 7
        self.track_x = self.x + 8
        self.track_w = self.width - 16

    def _to_unit(self, val):
        if self.log_scale:
            lo, hi = math.log10(self.min_val), math.log10(self.max_val)
            return (math.log10(val) - lo) / (hi - lo)
        return (val - self.min_val) / (self.max_val - self.min_val)

    def _from_unit(self, frac):
        if self.log_scale:
            lo, hi = math.log10(self.min_val), math.log10(self.max_val)
            val = 10 ** (lo + frac * (hi - lo))
        else:
            val = self.min_val + frac * (self.max_val - self.min_val)
        if self.step:
            val = round(val / self.step) * self.step
        return max(self.min_val, min(self.max_val, val))

    def _val_to_x(self, val):
        return self.track_x + self._to_unit(val) * self.track_w

    def _x_to_val(self, px):
        frac = (px - self.track_x) / self.track_w
        return self._from_unit(max(0.0, min(1.0, frac)))

    def _set_from_mouse(self, mx):
        self.value = self._x_to_val(mx)
        if self.on_change:
            self.on_change(self.value)

    def handle_event(self, event):
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            mx, my = event.pos
            if (self.track_x - 4 <= mx <= self.track_x + self.track_w + 4 and
                    self.track_y - 12 <= my <= self.track_y + 12):
                self.dragging = True
                self._set_from_mouse(mx)
                return True

        elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
            self.dragging = False

        elif event.type == pygame.MOUSEMOTION:
            mx, my = event.pos
            hx = self._val_to_x(self.value)
            self.hovered = abs(mx - hx) < 12 and abs(my - self.track_y) < 12
            if self.dragging:
                self._set_from_mouse(mx)
                return True

        return False

    def set_value(self, val):
        self.value = max(self.min_val, min(self.max_val, val))

    def value_text(self):
        if self.formatter is not None:
            return self.formatter(self.value)
        return f"{self.value:{self.fmt}}"

    def draw(self, surface, font):
        label_surf = font.render(self.label, True, THEME["text"])
        surface.blit(label_surf, (self.x + 8, self.y + 2))

        val_surf = font.render(self.value_text(), True, THEME["text_bright"])
        surface.blit(val_surf, (self.x + self.width - val_surf.get_width() - 8, self.y + 2))

        track_rect = pygame.Rect(self.track_x, self.track_y - self.track_h // 2,
                                 self.track_w, self.track_h)
        pygame.draw.rect(surface, THEME["track"], track_rect, border_radius=2)

        hx = self._val_to_x(self.value)
        fill_rect = pygame.Rect(self.track_x, self.track_y - self.track_h // 2,
                                hx - self.track_x, self.track_h)
        pygame.draw.rect(surface, THEME["track_fill"], fill_rect, border_radius=2)

        color = THEME["handle_active"] if (self.dragging or self.hovered) else THEME["handle"]
        r = self.handle_r + (2 if self.dragging else 0)
        pygame.draw.circle(surface, color, (int(hx), self.track_y), r)


class Button:
    """Clickable button with label."""

    def __init__(self, x, y, width, height, label, on_click=None, active=False):
        self.rect = pygame.Rect(x, y, width, height)
        self.label = label
        self.on_click = on_click
        self.active = active
        self.hovered = False

    def handle_event(self, event):
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            if self.rect.collidepoint(event.pos):
                if self.on_click:
                    self.on_click()
                return True
        elif event.type == pygame.MOUSEMOTION:
            self.hovered = self.rect.collidepoint(event.pos)
        return False

    def draw(self, surface, font):
        if self.active:
            color = THEME["button_active"]
        elif self.hovered:
            color = THEME["button_hover"]
        else:
            color = THEME["button"]
        pygame.draw.rect(surface, color, self.rect, border_radius=4)

        label_surf = font.render(self.label, True, THEME["text_bright"])
        lx = self.rect.x + (self.rect.width - label_surf.get_width()) // 2
        ly = self.rect.y + (self.rect.height - label_surf.get_height()) // 2
        surface.blit(label_surf, (lx, ly))


class ButtonRow:
    """Wrapping row of radio-style buttons."""

    def __init__(self, x, y, width, labels, selected=0, on_select=None, btn_height=26):
        self.labels = labels
        self.selected = selected
        self.on_select = on_select

        self.buttons = []
        padding = 4
        bx, by = x, y
        for label in labels:
            bw = max(len(label) * 8 + 16, 50)
            if bx + bw > x + width and bx > x:
                bx = x
                by += btn_height + padding
            self.buttons.append(Button(bx, by, bw, btn_height, label))
            bx += bw + padding

        self.total_height = by - y + btn_height
        self.select(selected)

    def select(self, index):
        self.selected = index
        for i, btn in enumerate(self.buttons):
            btn.active = i == index

    def handle_event(self, event):
        for i, btn in enumerate(self.buttons):
            if btn.handle_event(event):
                self.select(i)
                if self.on_select:
                    self.on_select(i, self.labels[i])
                return True
        return False

    def draw(self, surface, font):
        for btn in self.buttons:
            btn.draw(surface, font)


class Stepper:
    """`<  label  >` picker cycling through a list of labels."""

    def __init__(self, x, y, width, labels, index=0, on_change=None, height=26):
        self.labels = labels
        self.index = index
        self.on_change = on_change
        self.height = height
        self.prev = Button(x, y, height, height, "<", on_click=lambda: self.step(-1))
        self.next = Button(x + width - height, y, height, height, ">",
                           on_click=lambda: self.step(1))
        self.text_rect = pygame.Rect(x + height, y, width - 2 * height, height)

    def step(self, delta):
        self.index = (self.index + delta) % len(self.labels)
        if self.on_change:
            self.on_change(self.index)

    def handle_event(self, event):
        return self.prev.handle_event(event) or self.next.handle_event(event)

    def draw(self, surface, font):
        self.prev.draw(surface, font)
        self.next.draw(surface, font)
        text = f"{self.index:2d}  {self.labels[self.index]}"
        text_surf = font.render(text, True, THEME["text_bright"])
        surface.blit(text_surf, (self.text_rect.x + 8,
                                 self.text_rect.y + (self.height - text_surf.get_height()) // 2))


class ProgressBar:
    """Thin bar with a status line underneath."""

    def __init__(self, x, y, width):
        self.x = x
        self.y = y
        self.width = width
        self.height = 30
        self.fraction = 0.0
        self.message = "Idle"

    def draw(self, surface, font):
        track = pygame.Rect(self.x + 8, self.y + 4, self.width - 16, 4)
        pygame.draw.rect(surface, THEME["track"], track, border_radius=2)
        fill = track.copy()
        fill.width = int(track.width * max(0.0, min(1.0, self.fraction)))
        pygame.draw.rect(surface, THEME["track_fill"], fill, border_radius=2)
        msg_surf = font.render(self.message, True, THEME["text_dim"])
        surface.blit(msg_surf, (self.x + 8, self.y + 12))


class SectionHeader:
    """Section divider with title."""

    def __init__(self, x, y, width, title):
        self.x = x
        self.y = y
        self.width = width
        self.title = title
        self.height = 24

    def draw(self, surface, font):
        pygame.draw.line(surface, THEME["divider"],
                         (self.x + 8, self.y + 8),
                         (self.x + self.width - 8, self.y + 8))
        title_surf = font.render(self.title, True, THEME["text_dim"])
        surface.blit(title_surf, (self.x + 8, self.y + 12))


class ControlPanel:
    """Side panel that lays out, dispatches events to and draws its widgets."""

    def __init__(self, x, y, width, height):
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.widgets = []
        self.surface = pygame.Surface((width, height))
        self._cursor_y = 8

    def _add(self, widget, height):
        self.widgets.append(widget)
        self._cursor_y += height
        return widget

    def add_section(self, title):
        header = SectionHeader(0, self._cursor_y, self.width, title)
        return self._add(header, header.height + 4)

    def add_slider(self, label, min_val, max_val, value, fmt=".3f",
                   step=None, on_change=None, log_scale=False, formatter=None):
        slider = Slider(0, self._cursor_y, self.width, label, min_val, max_val, value,
                        fmt, step, on_change, log_scale, formatter)
        return self._add(slider, slider.height + 6)

    def add_button_row(self, labels, selected=0, on_select=None):
        row = ButtonRow(8, self._cursor_y, self.width - 16, labels, selected, on_select)
        return self._add(row, row.total_height + 8)

    def add_button(self, label, on_click=None):
        btn = Button(8, self._cursor_y, self.width - 16, 28, label, on_click)
        return self._add(btn, 36)

    def add_stepper(self, labels, index=0, on_change=None):
        stepper = Stepper(8, self._cursor_y, self.width - 16, labels, index, on_change)
        return self._add(stepper, stepper.height + 8)

    def add_progress(self):
        bar = ProgressBar(0, self._cursor_y, self.width)
        return self._add(bar, bar.height + 4)

    def add_spacer(self, height=8):
        self._cursor_y += height

    def handle_event(self, event):
        """Route an event to the widgets in panel-local coordinates."""
        if hasattr(event, "pos"):
            local_pos = (event.pos[0] - self.x, event.pos[1] - self.y)
            if not (0 <= local_pos[0] <= self.width and 0 <= local_pos[1] <= self.height):
                # Release drags that end outside the panel
                if event.type == pygame.MOUSEBUTTONUP:
                    for widget in self.widgets:
                        if hasattr(widget, "dragging"):
                            widget.dragging = False
                return False
            event = pygame.event.Event(event.type, {
                **{k: v for k, v in event.__dict__.items() if k != "pos"},
                "pos": local_pos,
            })

        for widget in self.widgets:
            if hasattr(widget, "handle_event") and widget.handle_event(event):
                return True
        return False

    def draw(self, target_surface, font):
        self.surface.fill(THEME["panel"])
        pygame.draw.line(self.surface, THEME["divider"], (0, 0), (0, self.height))
        for widget in self.widgets:
            widget.draw(self.surface, font)
        target_surface.blit(self.surface, (self.x, self.y))
