"""
vmgr: a terminal dashboard for libvirt virtual machines
"""
