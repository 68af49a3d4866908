#!/usr/bin/env python3
import customtkinter as ctk
import tkinter as tk
import logging
import sys
from tkinter import messagebox

from config import get_config
from errors import LoopHostError
from loophost_logic import Hosts

# Set appearance and color theme for consistent UI
ctk.set_appearance_mode("dark")  # Options: "dark", "light", "system"
ctk.set_default_color_theme("dark-blue")  # Options: "blue", "dark-blue", "green"

logger = logging.getLogger(__name__)


class LoopHostApp(ctk.CTk):
    def __init__(self, hosts: Hosts):
        super().__init__()
        self.hosts = hosts

        self.title("🌐 LoopHost")
        self.geometry("720x520")
        self.resizable(True, True)

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(3, weight=1)

        # Title
        title_frame = ctk.CTkFrame(self)
        title_frame.grid(row=0, column=0, padx=20, pady=(20, 10), sticky="ew")

        ctk.CTkLabel(title_frame, text="🌐 LoopHost", font=("Arial", 18, "bold")).pack(pady=(15, 5))
        ctk.CTkLabel(title_frame, text=f"{hosts.filename}  ·  {hosts.block}",
                     font=("Arial", 12), text_color="gray").pack(pady=(0, 15))

        # Hostname input
        input_frame = ctk.CTkFrame(self)
        input_frame.grid(row=1, column=0, padx=20, pady=10, sticky="ew")
        input_frame.grid_columnconfigure((0, 1, 2, 3), weight=1)

        ctk.CTkLabel(input_frame, text="Hostname:", font=("Arial", 11, "bold")).grid(
            row=0, column=0, columnspan=4, sticky="w", padx=10, pady=(10, 5))
        self.hostname_entry = ctk.CTkEntry(input_frame, placeholder_text="e.g., app.test", height=35)
        self.hostname_entry.grid(row=1, column=0, columnspan=4, sticky="ew", padx=10, pady=(0, 10))
        self.hostname_entry.bind("<Return>", lambda event: self.map_hostname())
        self.hostname_entry.bind("<KP_Enter>", lambda event: self.map_hostname())

        buttons = [
            ("➕ Map", self.map_hostname, "#28a745", "#218838"),
            ("🔍 Lookup", self.lookup_hostname, "#17a2b8", "#138496"),
            ("🗑️ Unmap", self.unmap_hostname, "#dc3545", "#c82333"),
            ("🎲 Random IP", self.random_ip, "#6c757d", "#5a6268"),
        ]
        for column, (text, command, color, hover) in enumerate(buttons):
            ctk.CTkButton(input_frame, text=text, command=command, height=40,
                          font=("Arial", 12), fg_color=color, hover_color=hover).grid(
                row=2, column=column, padx=5, pady=(0, 12), sticky="ew")

        self.result_label = ctk.CTkLabel(self, text="", font=("Consolas", 16, "bold"))
        self.result_label.grid(row=2, column=0, padx=20, pady=5, sticky="ew")

        # Current mappings
        list_frame = ctk.CTkFrame(self)
        list_frame.grid(row=3, column=0, padx=20, pady=(5, 20), sticky="nsew")
        list_frame.grid_columnconfigure(0, weight=1)
        list_frame.grid_rowconfigure(1, weight=1)

        ctk.CTkLabel(list_frame, text="📋 Current Mappings", font=("Arial", 14, "bold")).grid(
            row=0, column=0, pady=(15, 10), sticky="w", padx=15)

        self.records_textbox = tk.Text(list_frame, wrap="none", font=("Consolas", 10),
                                       bg="#1f1f1f", fg="white", insertbackground="white")
        self.records_textbox.grid(row=1, column=0, sticky="nsew", padx=(15, 0), pady=(0, 15))
        self.records_textbox.tag_configure("ip", foreground="#00ffff")
        self.records_textbox.tag_configure("hostname", foreground="#90ee90")

        scrollbar = tk.Scrollbar(list_frame, orient="vertical", command=self.records_textbox.yview)
        scrollbar.grid(row=1, column=1, sticky="ns", padx=(0, 15), pady=(0, 15))
        self.records_textbox.configure(yscrollcommand=scrollbar.set)

        self.refresh_records()

    def _run(self, operation, *args):
        """Run a Hosts operation, reporting failures in a dialog."""
        try:
            return operation(*args)
        except LoopHostError as e:
            logger.error(f"{operation.__name__} failed: {e}")
            messagebox.showerror("Error", str(e), parent=self)
            return None

    def _hostname(self):
        hostname = self.hostname_entry.get().strip()
        if not hostname:
            messagebox.showwarning("Missing hostname", "Please enter a hostname.", parent=self)
        return hostname

    def _show(self, text):
        self.result_label.configure(text=text)
        self.refresh_records()

    def map_hostname(self):
        hostname = self._hostname()
        if hostname:
            ip = self._run(self.hosts.map, hostname)
            if ip is not None:
                self._show(f"{hostname} → {ip}")

    def lookup_hostname(self):
        hostname = self._hostname()
        if hostname:
            ip = self._run(self.hosts.ip, hostname)
            if ip is not None:
                self._show(f"{hostname} → {ip}" if ip else f"{hostname} is not mapped")

    def unmap_hostname(self):
        hostname = self._hostname()
        if not hostname:
            return
        if not messagebox.askyesno("Confirm", f"Remove the mapping for {hostname}?", parent=self):
            return
        ip = self._run(self.hosts.unmap, hostname)
        if ip is not None:
            self._show(f"Removed {hostname} ({ip})" if ip else f"{hostname} was not mapped")

    def random_ip(self):
        ip = self._run(self.hosts.random_ip)
        if ip is not None:
            self._show(ip)

    def refresh_records(self):
        records = self._run(self.hosts.records) or []

        self.records_textbox.configure(state="normal")
        self.records_textbox.delete("1.0", tk.END)
        for record in records:
            self.records_textbox.insert(tk.END, f"{record.address:<18}", "ip")
            self.records_textbox.insert(tk.END, " ".join(record.hostnames) + "\n", "hostname")
        self.records_textbox.configure(state="disabled")


def main():
    config = get_config()
    config.setup_logging()
    try:
        app = LoopHostApp(Hosts(config))
        app.mainloop()
    except LoopHostError as e:
        print(f"❌ loophost-gui: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nGUI interrupted by user. Exiting gracefully.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
